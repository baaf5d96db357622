# MIT License
# Copyright (c) 2025 Hashborn

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
from typing import Optional
from ...protocol.types.common import LedgerError, NotYetDeterminedError
from ...protocol.types.delegation import SignedDelegation
from ..core.governance import GovernanceLedger
import logging

logger = logging.getLogger(__name__)

app = FastAPI(title="VoteChain Ledger RPC")

ledger: Optional[GovernanceLedger] = None

class DelegationResponse(BaseModel):
    status: str
    delegator: str
    from_delegate: str
    to_delegate: str
    amount: str
    time_index: int

def _require_ledger() -> GovernanceLedger:
    if not ledger:
        raise HTTPException(status_code=503, detail="Node not initialized")
    return ledger

@app.get("/status")
async def get_status():
    node = _require_ledger()
    return {
        "height": node.height,
        "timestamp": node.clock.timestamp,
        "network": node.config.network_id,
        "chain_id": node.config.chain_id,
        "ledger_address": node.config.ledger_address,
        "domain_separator": node.domain_separator.hex(),
        "state_root": node.compute_state_root(),
    }

@app.get("/weight/{address}")
async def get_weight(address: str):
    node = _require_ledger()
    try:
        weight = node.get_current_weight(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"address": address, "weight": str(weight), "height": node.height}

@app.get("/weight/{address}/at/{time_index}")
async def get_weight_at(address: str, time_index: int):
    node = _require_ledger()
    try:
        weight = node.get_weight_as_of(address, time_index)
    except NotYetDeterminedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"address": address, "weight": str(weight), "time_index": time_index}

@app.get("/delegate/{address}")
async def get_delegate(address: str):
    node = _require_ledger()
    try:
        delegate = node.get_delegate(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"address": address, "delegate": delegate}

@app.get("/sequence/{address}")
async def get_sequence(address: str):
    node = _require_ledger()
    try:
        sequence = node.get_sequence_number(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"address": address, "sequence": sequence}

@app.get("/checkpoints/{address}")
async def get_checkpoints(address: str):
    node = _require_ledger()
    try:
        history = node.get_checkpoints(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "address": address,
        "count": len(history),
        "checkpoints": [{"time_index": cp.time_index, "weight": str(cp.weight)} for cp in history],
    }

@app.post("/delegate/signed", response_model=DelegationResponse)
async def submit_signed_delegation(req: SignedDelegation):
    node = _require_ledger()
    try:
        receipt = node.delegate_by_signature(req.delegatee, req.nonce, req.expiry, req.signature_bytes())
    except (LedgerError, ValueError) as e:
        logger.warning(f"Signed delegation rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return DelegationResponse(
        status="accepted",
        delegator=receipt.delegator,
        from_delegate=receipt.from_delegate,
        to_delegate=receipt.to_delegate,
        amount=str(receipt.amount),
        time_index=receipt.time_index,
    )

@app.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
    from ..observability.metrics import metrics_registry, update_metrics

    node = _require_ledger()
    update_metrics(node)
    return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)
