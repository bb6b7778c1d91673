"""Development server: python run_server.py (from the backend directory)."""
import uvicorn

from app.core.config import settings


def main():
    print("=" * 50)
    print(f"  {settings.STORE_NAME} backend")
    print(f"  http://{settings.HOST}:{settings.PORT}  ({settings.ENVIRONMENT})")
    if not settings.GROQ_API_KEY:
        print("  AI assistant and insights disabled: GROQ_API_KEY not set")
    print("=" * 50)

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
