from __future__ import annotations

import uuid


def new_job_id() -> str:
    # uuid4 draws from os.urandom, so ids cannot be guessed from earlier ones
    return str(uuid.uuid4())
