"""Token estimation for budgeting (before) and billing (after) a batch."""

import math
from collections.abc import Iterable

from docworker.processing.models import FileSubmission, ProcessingMode

CHARS_PER_TOKEN = 4

# Multipliers in tenths to keep the arithmetic integral.
_OCR_OVERHEAD_TENTHS = 12
_DEFAULT_OVERHEAD_TENTHS = 20

# Raw byte-derived token counts are scaled down to billing units.
_BILLING_DIVISOR = 10_000


def estimate_tokens_needed(files: Iterable[FileSubmission], mode: ProcessingMode) -> int:
    """Advisory upper estimate used for the pre-submission budget check."""
    total_size = sum(f.size for f in files)
    base_tokens = math.ceil(total_size / CHARS_PER_TOKEN)
    overhead = (
        _OCR_OVERHEAD_TENTHS if mode is ProcessingMode.OCR else _DEFAULT_OVERHEAD_TENTHS
    )
    with_overhead = -(-base_tokens * overhead // 10)
    return -(-with_overhead // _BILLING_DIVISOR)


def estimate_tokens_used(input_text: str, output_text: str) -> int:
    """Measured usage billed after a successful run."""
    input_tokens = math.ceil(len(input_text) / CHARS_PER_TOKEN)
    output_tokens = math.ceil(len(output_text) / CHARS_PER_TOKEN)
    return input_tokens + output_tokens
