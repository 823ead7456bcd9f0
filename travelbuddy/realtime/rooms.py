def room_for_user(user_id: int) -> str:
    return f"user-{int(user_id)}"


def room_for_activity(activity_id: int) -> str:
    return f"activity-{int(activity_id)}"
