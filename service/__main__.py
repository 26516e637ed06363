"""
Ledger 서비스 진입점

실행 방법:
    python -m service
"""

import asyncio

from service.bootstrap import main

if __name__ == "__main__":
    asyncio.run(main())
