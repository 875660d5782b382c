# core/utils.py

def sanitize(data: dict) -> dict:
    """
    Sanitize dictionary data before it is written:
    - Strip string whitespace
    - Empty strings → None
    - Everything else kept as-is (role names like "2024 Crew" stay strings)
    """
    clean = {}

    for k, v in data.items():
        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped or None
            continue

        clean[k] = v

    return clean


def unique_ids(ids) -> list:
    """String ids, de-duplicated, first occurrence order kept."""
    return list(dict.fromkeys(str(i) for i in ids if i is not None))
