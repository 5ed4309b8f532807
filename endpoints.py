# Lodestone API routes; update if the service contract changes.
import os

BASE_URL = os.getenv("LODESTONE_BASE_URL", "http://localhost:8000")

AUTH = {
    "register": {
        "method": "POST",
        "path": "/api/v1/auth/register",
    },
    "login": {
        "method": "POST",
        "path": "/api/v1/auth/login",
    },
    "me": {
        "method": "GET",
        "path": "/api/v1/auth/me",
    },
}

FILES = {
    "list": {
        "method": "GET",
        "path": "/api/v1/files/",
    },
    "upload": {
        "method": "POST",
        "path": "/api/v1/files/upload",
    },
    "delete": {
        "method": "DELETE",
        "path": "/api/v1/files/{file_id}",
    },
    "download": {
        "method": "GET",
        "path": "/api/v1/files/{file_id}/download",
    },
}

SEMANTIC = {
    "query": {
        "method": "POST",
        "path": "/api/v1/semantic/query",
    },
}
