"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1.admin.routes import router as admin_router
from app.api.v1.auth.routes import router as auth_router
from app.api.v1.blog_approvals.routes import router as blog_approvals_router
from app.api.v1.blog_posts.routes import router as blog_posts_router
from app.api.v1.blog_publishing.routes import router as blog_publishing_router
from app.api.v1.blog_queue.routes import router as blog_queue_router
from app.api.v1.blog_writer.routes import router as blog_writer_router
from app.api.v1.content_presets.routes import router as content_presets_router
from app.api.v1.integrations.routes import router as integrations_router
from app.api.v1.interlinking.routes import router as interlinking_router
from app.api.v1.keywords.routes import router as keywords_router
from app.api.v1.media.routes import router as media_router
from app.api.v1.workflow.routes import router as workflow_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
api_router.include_router(blog_posts_router, prefix="/blog-posts", tags=["Blog Posts"])
api_router.include_router(blog_queue_router, prefix="/blog-queue", tags=["Blog Queue"])
api_router.include_router(blog_approvals_router, prefix="/blog-approvals", tags=["Approvals"])
api_router.include_router(blog_publishing_router, prefix="/blog-publishing", tags=["Publishing"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["Integrations"])
api_router.include_router(keywords_router, prefix="/keywords", tags=["Keywords"])
api_router.include_router(blog_writer_router, prefix="/blog-writer", tags=["Blog Writer"])
api_router.include_router(workflow_router, prefix="/workflow", tags=["Workflow"])
api_router.include_router(interlinking_router, prefix="/interlinking", tags=["Interlinking"])
api_router.include_router(media_router, prefix="/media", tags=["Media"])
api_router.include_router(content_presets_router, prefix="/content-presets", tags=["Presets"])
