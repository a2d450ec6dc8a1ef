import uvicorn

from .app import create_app


def main() -> None:
    uvicorn.run("lgl_sync.app:create_app", factory=True, reload=False)


if __name__ == "__main__":
    main()
