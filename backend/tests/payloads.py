"""Raw board payloads shaped like the GraphQL response."""

def board_item(item_id="PVTI_a", *, number=1, title="Fix login", state="OPEN", fields=None,
               assignees=None, milestone=None, item_type="ISSUE"):
    """A raw board item shaped like the GraphQL payload."""
    content = {
        "id": f"I_{item_id}",
        "number": number,
        "title": title,
        "state": state,
        "assignees": {"nodes": assignees or []},
        "milestone": {"title": milestone} if milestone else None,
    }
    return {
        "id": item_id,
        "type": item_type,
        "content": content,
        "fieldValues": {"nodes": fields or []},
    }


def field(name, /, **slot):
    return {"field": {"name": name}, **slot}
