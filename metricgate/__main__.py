"""Run the metricgate ops API: python3 -m metricgate"""

import uvicorn

from metricgate.config import settings


def main() -> None:
    uvicorn.run("metricgate.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
