# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import logging

import boto3

logger = logging.getLogger()


class RdsTokenProvider:
    """Signs a fresh RDS IAM authentication token on every call.

    Tokens are valid for 15 minutes but are used immediately for a single
    connection and never cached. When ``role_arn`` is given the role is
    assumed first and the token is signed with its temporary credentials,
    which lets a function connect to a database owned by another account.
    """

    def __init__(self, region, host, port, username, role_arn=None, session=None):
        self.region = region
        self.host = host
        self.port = port
        self.username = username
        self.role_arn = role_arn
        self.session = session or boto3.session.Session()

    def _rds_client(self):
        if not self.role_arn:
            return self.session.client("rds", region_name=self.region)

        sts_connection = self.session.client("sts", region_name=self.region)
        database_account_session = sts_connection.assume_role(
            RoleArn=self.role_arn,
            RoleSessionName="rds_iam_query",
        )
        credentials = database_account_session["Credentials"]

        return self.session.client(
            "rds",
            region_name=self.region,
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
        )

    def get_token(self) -> str:
        logger.debug(
            "Generating auth token for %s@%s:%s",
            self.username,
            self.host,
            self.port,
        )
        client = self._rds_client()
        return client.generate_db_auth_token(
            DBHostname=self.host,
            Port=self.port,
            DBUsername=self.username,
            Region=self.region,
        )

    @classmethod
    def from_config(cls, config):
        return cls(
            region=config.region,
            host=config.host,
            port=config.port,
            username=config.username,
            role_arn=config.role_arn,
        )
