# Register every SQLModel table at test discovery time, before any create_all
import matchday.models  # noqa: F401
