# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger()

POSTGRESQL_PORT = 5432
DEFAULT_DBNAME = "lambdadb"
DEFAULT_SSL_MODE = "require"

# libpq modes that never fall back to an unencrypted session
ENCRYPTED_SSL_MODES = ("require", "verify-ca", "verify-full")


@dataclass(frozen=True)
class HandlerConfig:
    """Database settings read once from the Lambda environment."""

    host: str
    username: str
    region: str
    database: str = DEFAULT_DBNAME
    port: int = POSTGRESQL_PORT
    password: Optional[str] = None
    ssl_mode: str = DEFAULT_SSL_MODE
    ssl_root_cert: Optional[str] = None
    role_arn: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_environ(cls, environ=None) -> "HandlerConfig":
        if environ is None:
            environ = os.environ

        ssl_mode = environ.get("DB_SSL_MODE", DEFAULT_SSL_MODE)
        if ssl_mode not in ENCRYPTED_SSL_MODES:
            raise ValueError(
                f"DB_SSL_MODE={ssl_mode} does not enforce an encrypted connection",
            )

        log_level = environ.get("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL={log_level} is not a logging level")

        password = environ.get("DB_PASSWORD")
        if password:
            # IAM token authentication always supersedes the static password
            logger.warning("DB_PASSWORD is set but ignored, using IAM authentication")

        return cls(
            host=environ["DB_HOST"],
            username=environ["DB_USERNAME"],
            region=environ["AWS_REGION"],
            database=environ.get("DBNAME", DEFAULT_DBNAME),
            password=password,
            ssl_mode=ssl_mode,
            ssl_root_cert=environ.get("DB_SSL_ROOT_CERT") or None,
            role_arn=environ.get("DATABASE_ACCOUNT_IAM_ROLE") or None,
            log_level=log_level,
        )

    def connect_kwargs(self, token: str) -> dict:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.username,
            "password": token,
            "sslmode": self.ssl_mode,
        }
        if self.ssl_root_cert:
            kwargs["sslrootcert"] = self.ssl_root_cert
        return kwargs
