import math
import os
import uuid

def object_path_for(question_set_id: int, filename: str) -> str:
    """Storage path for an uploaded image: namespaced by set, randomized name."""
    _, ext = os.path.splitext(filename or "")
    ext = ext.lower().lstrip(".") or "bin"
    return f"{question_set_id}/{uuid.uuid4().hex}.{ext}"

def percentage_score(correct: int, total: int) -> int:
    # Half-up rounding, round() would give banker's rounding
    if total <= 0:
        return 0
    return int(math.floor(correct / total * 100 + 0.5))

def format_duration(seconds: int) -> str:
    return f"{seconds // 60}m {seconds % 60}s"
