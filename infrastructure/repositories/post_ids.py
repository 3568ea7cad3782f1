from bson import ObjectId


def new_post_id() -> str:
    """Return a new post id as a 24-char hex ObjectId.

    ObjectIds from one process increase in generation order, so a post that
    shares a millisecond with an earlier one still sorts after it.
    """
    return str(ObjectId())
