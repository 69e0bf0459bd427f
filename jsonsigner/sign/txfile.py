# jsonsigner/sign/txfile.py
import json
from pathlib import Path
from typing import Iterable, List, Union

from jsonsigner.core.types import Tx
from jsonsigner.errors import TxFormatError


def read_tx_file(path: Union[str, Path]) -> Tx:
    """Read a single JSON transaction (pretty-printed or compact)."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise TxFormatError(f"JSON decode {path}: {e}") from e
    return Tx.from_dict(data)


def read_txs(path: Union[str, Path]) -> List[Tx]:
    """Read newline-delimited JSON transactions; blank lines are skipped."""
    path = Path(path)
    txs = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                txs.append(Tx.from_dict(json.loads(line)))
            except json.JSONDecodeError as e:
                raise TxFormatError(f"JSON decode {path} line {lineno}: {e}") from e
    return txs


def read_tx_files(paths: Iterable[Union[str, Path]]) -> List[Tx]:
    txs: List[Tx] = []
    for p in paths:
        txs.extend(read_txs(p))
    return txs
