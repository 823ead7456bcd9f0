def group_tags(result, generator, request, public):
    """Group every operation under one feature tag, picked by path prefix."""
    patterns = [
        (lambda p: p in {"/api/register/", "/api/login/"}, "Auth"),
        (lambda p: p.startswith("/api/profile/"), "Profile"),
        (lambda p: p.startswith("/api/users/"), "Users"),
        (lambda p: p.startswith("/api/activities/") and p.endswith("/chat/"), "Chat"),
        (lambda p: p.startswith("/api/activities/"), "Activities"),
        (lambda p: p.startswith("/api/notifications/"), "Notifications"),
        (lambda p: p.startswith("/api/schema/"), "Meta"),
    ]
    for path, operations in result.get("paths", {}).items():
        tag = None
        for pred, name in patterns:
            if pred(path):
                tag = name
                break
        if tag is None:
            continue
        for op in operations.values():
            op["tags"] = [tag]
    return result
