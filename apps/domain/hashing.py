import hashlib
import json


def canonical_json(value) -> str:
    return json.dumps(value, sort_keys=True, separators=(',', ':'), default=str)


def sha256_hex(value: str) -> str:
    return hashlib.sha256((value or '').encode('utf-8')).hexdigest()
