# MIT License
# Copyright (c) 2025 Hashborn

import pytest
from votechain.protocol.types.arithmetic import (
    add_checked, sub_checked, narrow_to_32, narrow_to_96, UINT32_MAX, UINT96_MAX,
)
from votechain.protocol.types.common import WeightOverflowError, WeightUnderflowError, RangeError


def test_add_checked():
    assert add_checked(2, 3) == 5
    assert add_checked(UINT96_MAX - 1, 1) == UINT96_MAX

    with pytest.raises(WeightOverflowError, match="exceeds 96 bits"):
        add_checked(UINT96_MAX, 1)


def test_sub_checked():
    assert sub_checked(5, 5) == 0
    assert sub_checked(7, 2) == 5

    with pytest.raises(WeightUnderflowError, match="vote amount underflows"):
        sub_checked(1, 2, "vote amount underflows")


def test_narrowing_bounds():
    assert narrow_to_32(UINT32_MAX) == UINT32_MAX
    assert narrow_to_96(UINT96_MAX) == UINT96_MAX
    assert narrow_to_32(0) == 0

    with pytest.raises(RangeError, match="block number exceeds 32 bits"):
        narrow_to_32(2**32, "block number exceeds 32 bits")
    with pytest.raises(RangeError):
        narrow_to_96(2**96)
    with pytest.raises(RangeError):
        narrow_to_32(-1)
