"""
Club 진입점

실행 방법:
    python -m club
"""

import asyncio

from club.bootstrap import main

if __name__ == "__main__":
    asyncio.run(main())
