# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import pytest

from handler_config import HandlerConfig


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query):
        self.conn.executed.append(query)
        if self.conn.query_error is not None:
            raise self.conn.query_error
        if self.conn.rows is not None:
            self.description = [("id",)]

    def fetchall(self):
        return list(self.conn.rows)


class FakeConnection:
    def __init__(self, rows=None, query_error=None, close_error=None):
        self.rows = rows
        self.query_error = query_error
        self.close_error = close_error
        self.autocommit = False
        self.executed = []
        self.cursor_factories = []
        self.close_calls = 0

    def cursor(self, cursor_factory=None):
        self.cursor_factories.append(cursor_factory)
        return FakeCursor(self)

    def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeConnect:
    def __init__(self, conn):
        self.conn = conn
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.conn


class FakeTokenProvider:
    def __init__(self, token="signed-token", error=None):
        self.token = token
        self.error = error
        self.calls = 0

    def get_token(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


@pytest.fixture
def config():
    return HandlerConfig(
        host="db.cluster.us-east-1.rds.amazonaws.com",
        username="lambda_query",
        region="us-east-1",
    )


@pytest.fixture
def token_provider():
    return FakeTokenProvider()
