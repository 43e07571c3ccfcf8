"""NIP-01 subscription filters.

Builds the filter objects carried by REQ messages. Filters are opaque to this
package: they are constructed and passed through, never evaluated.
"""


def build_filter(
    ids: list[str] | None = None,
    authors: list[str] | None = None,
    kinds: list[int] | None = None,
    events: list[str] | None = None,
    profiles: list[str] | None = None,
    since: int | None = None,
    until: int | None = None,
    limit: int | None = None,
) -> dict:
    """Build a filter mapping from optional constraints.

    CONTRACT:
      Inputs:
        - ids: event id prefixes or ids
        - authors: author pubkey prefixes or pubkeys
        - kinds: event kinds
        - events: ids referenced by "e" tags
        - profiles: pubkeys referenced by "p" tags
        - since, until: created_at bounds in seconds
        - limit: maximum number of events for the initial query

      Outputs:
        - filter: dict with keys ids, authors, kinds, #e, #p, since, until, limit

      Invariants:
        - None or empty list constraints are omitted
        - Key order is fixed: ids, authors, kinds, #e, #p, since, until, limit
        - Lists are copied, never aliased

      Raises:
        - ValueError: since, until or limit is negative, or since > until
    """
    for name, value in (("since", since), ("until", until), ("limit", limit)):
        if value is not None and value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")

    if since is not None and until is not None and since > until:
        raise ValueError(f"since ({since}) must not be after until ({until})")

    result = {}
    for key, values in (("ids", ids), ("authors", authors), ("kinds", kinds), ("#e", events), ("#p", profiles)):
        if values:
            result[key] = list(values)

    if since is not None:
        result["since"] = since
    if until is not None:
        result["until"] = until
    if limit is not None:
        result["limit"] = limit

    return result
