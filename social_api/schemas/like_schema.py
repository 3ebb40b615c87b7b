from pydantic import BaseModel

class LikeStatus(BaseModel):
    post_id: int
    liked: bool
    like_count: int
