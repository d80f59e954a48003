import json
import re

from docworker.logging.logger import Log
from docworker.processing.exceptions import ModelReportedError

_FENCED_JSON_RE = re.compile(r"^```(?:json|JSON)(.*)```$", re.DOTALL)


def clean_model_output(raw: str) -> str:
    """Unwrap a fenced ```json {"text": ..., "error": ...}``` model response.

    Anything that does not parse as such a block is returned unchanged.

    Raises:
        ModelReportedError: if the block carries a non-empty ``error`` field.
    """
    match = _FENCED_JSON_RE.match(raw.strip())
    if match is None:
        return raw
    try:
        parsed = json.loads(match.group(1).strip())
    except json.JSONDecodeError as exc:
        Log.debug(f"Model output looked like fenced JSON but did not parse: {exc}")
        return raw
    if not isinstance(parsed, dict):
        return raw

    error = parsed.get("error")
    if error:
        raise ModelReportedError(str(error))

    text = parsed.get("text")
    if isinstance(text, str):
        return text
    return raw
