from __future__ import annotations

import json
from typing import Any

from contracts import ProcessingOutcome


def serialize_outcome(outcome: ProcessingOutcome) -> str:
    payload: dict[str, Any] = outcome.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"
