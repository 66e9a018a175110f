"""
# Database Package

Persistence layer for the Blog Platform, built on **Motor** (async MongoDB driver).

The `db_manager` instance is a **module-level singleton**: it is created at import time
without I/O and connected during application startup.

```python
from blog_platform.database import db_manager

await db_manager.connect()
posts = db_manager.get_collection("posts")
await db_manager.disconnect()
```

Managers take the database handle as a constructor argument, so anything exposing
`get_collection(name)` can stand in for `db_manager` in tests.
"""

from blog_platform.database.manager import (
    CATEGORIES_COLLECTION,
    POSTS_COLLECTION,
    USERS_COLLECTION,
    DatabaseManager,
    db_manager,
)

__all__ = [
    "CATEGORIES_COLLECTION",
    "POSTS_COLLECTION",
    "USERS_COLLECTION",
    "DatabaseManager",
    "db_manager",
]
