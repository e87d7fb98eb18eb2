"""Run the relay with uvicorn: ``python -m momo_relay``."""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "momo_relay.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
    )


if __name__ == "__main__":
    main()
