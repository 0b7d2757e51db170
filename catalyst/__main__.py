import uvicorn

from catalyst.core.config import settings


def main() -> None:
    uvicorn.run(
        "catalyst.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    main()
