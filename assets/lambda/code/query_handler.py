# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import functools
import json
import logging
from typing import NamedTuple
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from handler_config import HandlerConfig
from token_provider import RdsTokenProvider

logger = logging.getLogger()


class QueryResult(NamedTuple):
    rows: list
    error: Optional[Exception] = None


def run_query(conn, query) -> QueryResult:
    """Execute ``query`` verbatim, returning the error instead of raising it."""
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(query)
            # statements such as INSERT or DDL produce no result set
            if cur.description is None:
                return QueryResult(rows=[])
            return QueryResult(rows=cur.fetchall())
    except psycopg2.Error as e:
        return QueryResult(rows=[], error=e)


class QueryHandler:
    def __init__(self, config, token_provider=None, connect=psycopg2.connect):
        self.config = config
        self.token_provider = token_provider or RdsTokenProvider.from_config(config)
        self.connect = connect

    def handle(self, event):
        query = event["query"]

        token = self.token_provider.get_token()

        conn = self.connect(**self.config.connect_kwargs(token))
        conn.autocommit = True

        result = run_query(conn, query)
        if result.error is not None:
            logger.error("Query failed: %s", result.error)
            raise result.error

        logger.info("Ran query: %s", query)
        row = None
        for row in result.rows:
            logger.info(row)

        conn.close()

        # Only the last row is returned; the full result set goes to the log.
        return {
            "statusCode": 200,
            "body": json.dumps(row, default=str),
        }


@functools.lru_cache(maxsize=None)
def _query_handler():
    config = HandlerConfig.from_environ()
    logger.setLevel(config.log_level)
    return QueryHandler(config)


def handler(event, context):
    return _query_handler().handle(event)
