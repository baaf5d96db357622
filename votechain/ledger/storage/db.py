# MIT License
# Copyright (c) 2025 Hashborn

import sqlite3
import threading
from typing import Dict, List, Optional, Tuple

class StorageDB:
    def __init__(self, db_path: str):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.cursor = self.conn.cursor()
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        with self._lock:
            # Checkpoints: weight is TEXT because uint96 does not fit SQLite INTEGER
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS checkpoints (
                    account TEXT NOT NULL,
                    idx INTEGER NOT NULL,
                    time_index INTEGER NOT NULL,
                    weight TEXT NOT NULL,
                    PRIMARY KEY (account, idx)
                )
            ''')
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS delegates (
                    account TEXT PRIMARY KEY,
                    delegate TEXT NOT NULL
                )
            ''')
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS sequences (
                    account TEXT PRIMARY KEY,
                    next_nonce INTEGER NOT NULL
                )
            ''')
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS owners (
                    unit_id INTEGER PRIMARY KEY,
                    owner TEXT NOT NULL
                )
            ''')
            # Key-Value store for clock and misc metadata
            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            ''')
            self.conn.commit()

    # --- Checkpoints ---
    def load_checkpoints(self) -> Dict[str, List[Tuple[int, int]]]:
        with self._lock:
            self.cursor.execute('SELECT account, time_index, weight FROM checkpoints ORDER BY account, idx')
            result: Dict[str, List[Tuple[int, int]]] = {}
            for account, time_index, weight in self.cursor.fetchall():
                result.setdefault(account, []).append((time_index, int(weight)))
            return result

    # --- Delegates ---
    def load_delegates(self) -> Dict[str, str]:
        with self._lock:
            self.cursor.execute('SELECT account, delegate FROM delegates')
            return {row[0]: row[1] for row in self.cursor.fetchall()}

    # --- Sequence numbers ---
    def load_sequences(self) -> Dict[str, int]:
        with self._lock:
            self.cursor.execute('SELECT account, next_nonce FROM sequences')
            return {row[0]: row[1] for row in self.cursor.fetchall()}

    # --- Unit ownership ---
    def load_owners(self) -> Dict[int, str]:
        with self._lock:
            self.cursor.execute('SELECT unit_id, owner FROM owners')
            return {row[0]: row[1] for row in self.cursor.fetchall()}

    # --- Full state ---
    def save_state(self, histories: Dict[str, List[Tuple[int, int]]], delegates: Dict[str, str],
                   sequences: Dict[str, int], owners: Optional[Dict[int, str]], meta: Dict[str, str]):
        """
        Replaces the stored ledger state in a single transaction.

        Either every table is updated or, if any write fails, none is.
        owners=None leaves the owners table untouched.
        """
        with self._lock:
            with self.conn:
                self.cursor.execute('DELETE FROM checkpoints')
                self.cursor.executemany(
                    'INSERT INTO checkpoints (account, idx, time_index, weight) VALUES (?, ?, ?, ?)',
                    [(account, i, t, str(w))
                     for account, rows in histories.items()
                     for i, (t, w) in enumerate(rows)]
                )
                self.cursor.execute('DELETE FROM delegates')
                self.cursor.executemany('INSERT INTO delegates (account, delegate) VALUES (?, ?)', list(delegates.items()))
                self.cursor.executemany(
                    'INSERT OR REPLACE INTO sequences (account, next_nonce) VALUES (?, ?)', list(sequences.items())
                )
                if owners is not None:
                    self.cursor.execute('DELETE FROM owners')
                    self.cursor.executemany('INSERT INTO owners (unit_id, owner) VALUES (?, ?)', list(owners.items()))
                self.cursor.executemany('INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)', list(meta.items()))

    # --- Meta ---
    def get_meta(self, key: str) -> Optional[str]:
        with self._lock:
            self.cursor.execute('SELECT value FROM meta WHERE key = ?', (key,))
            row = self.cursor.fetchone()
            return row[0] if row else None

    def close(self):
        with self._lock:
            self.conn.close()
