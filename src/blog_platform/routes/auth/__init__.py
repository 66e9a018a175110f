from blog_platform.routes.auth.routes import router

__all__ = ["router"]
