# athletrack/database/dependencies.py
from fastapi import HTTPException, status

from athletrack.database import connection
from athletrack.database.repositories import Repositories


def get_repositories() -> Repositories:
    if connection.db is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection not available"
        )
    return Repositories.from_db(connection.db)
