from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
import logging
import uuid

from schoolportal.core.dependencies import require_admin_or_teacher, require_teacher
from schoolportal.core.errors import PermissionDeniedError
from schoolportal.core.security import get_current_user
from schoolportal.db.supabase import get_supabase
from schoolportal.modules.assignments.service import ensure_teaches, get_class, get_student, utc_now_iso
from schoolportal.schemas.posts import PostCreate, PostResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


# -------------------------
# CLASS STREAM
# -------------------------
@router.post("/", response_model=PostResponse, status_code=201)
def create_post(
    post: PostCreate,
    teacher: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
):
    """Publish to a class stream. Only a teacher of that class."""
    ensure_teaches(get_class(client, post.class_id), teacher["id"])

    post_data = post.model_dump()
    post_data["id"] = str(uuid.uuid4())
    post_data["teacher_id"] = teacher["id"]
    post_data["created_at"] = utc_now_iso()

    result = client.table("posts").insert(post_data).execute()
    logger.info("Post %s created in class %s", post_data["id"], post.class_id)
    return result.data[0]


@router.get("/class/{class_id}", response_model=list[PostResponse])
def get_class_posts(
    class_id: str,
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """Stream of a class, newest first."""
    class_row = get_class(client, class_id)
    if user["role"] == "teacher":
        ensure_teaches(class_row, user["id"])
    elif user["role"] == "student":
        if class_id not in (get_student(client, user["id"]).get("enrolled_classes") or []):
            raise PermissionDeniedError("Not enrolled in this class")

    try:
        result = (
            client
            .table("posts")
            .select("*")
            .eq("class_id", class_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data
    except Exception:
        logger.exception("Get class posts error")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    user: dict = Depends(require_admin_or_teacher),
    client: Client = Depends(get_supabase),
):
    result = client.table("posts").select("id, teacher_id").eq("id", post_id).execute()
    if not result.data:
        raise HTTPException(status_code=404, detail="Post not found")
    if user["role"] != "admin" and result.data[0]["teacher_id"] != user["id"]:
        raise HTTPException(status_code=403, detail="Only the author can delete this post")

    client.table("posts").delete().eq("id", post_id).execute()
    logger.info("Post %s deleted by %s", post_id, user["id"])
    return {"message": "Post deleted successfully"}
