# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os

import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks
from cdk_nag import NagPackSuppression
from cdk_nag import NagSuppressions
from cdk_nag import NIST80053R5Checks

from cdk.query_stack import QueryStack

app = cdk.App()

env = cdk.Environment(
    account=os.environ["CDK_DEFAULT_ACCOUNT"],
    region=os.environ["CDK_DEFAULT_REGION"],
)

query_stack = QueryStack(app, "QueryStack", env=env)

# QueryStack Surpressions

NagSuppressions.add_stack_suppressions(
    query_stack,
    suppressions=[
        NagPackSuppression(
            id="AwsSolutions-IAM4",
            reason="Cannot control AmazonRDSEnhancedMonitoringRole and rotation function permissions",
        ),
        NagPackSuppression(
            id="AwsSolutions-IAM5",
            reason="Lambda basic execution policy uses minimal wildcarding",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-IAMNoInlinePolicy",
            reason="Cannot change default VPC flow log policy",
        ),
        NagPackSuppression(
            id="AwsSolutions-L1",
            reason="Users of this project can specify a Python runtime version that works in their environment",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-CloudWatchLogGroupEncrypted",
            reason="CloudWatch log encryption is not in scope for this project",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-VPCNoUnrestrictedRouteToIGW",
            reason="Default routes to IGW is acceptable for this project",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-VPCSubnetAutoAssignPublicIpDisabled",
            reason="Not deploying EC2 instances in the public subnet",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-LambdaDLQ",
            reason="Adding a DLQ for the query Lambda is not in scope for this project",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-SecretsManagerUsingKMSKey",
            reason="KMS encryption with an AWS managed key is acceptable for this project",
        ),
        NagPackSuppression(
            id="AwsSolutions-RDS3",
            reason="A single-AZ instance is sufficient for this project",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-RDSInstanceMultiAZSupport",
            reason="A single-AZ instance is sufficient for this project",
        ),
        NagPackSuppression(
            id="AwsSolutions-RDS10",
            reason="Deletion protection is intentionally disabled to make for easy destruction of this project",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-RDSInstanceDeletionProtectionEnabled",
            reason="Deletion protection is intentionally disabled to make for easy destruction of this project",
        ),
        NagPackSuppression(
            id="AwsSolutions-RDS11",
            reason="The conventional PostgreSQL port is used by the query Lambda",
        ),
        NagPackSuppression(
            id="NIST.800.53.R5-RDSInBackupPlan",
            reason="A backup plan is intentionally omitted to make for easy destruction of this project",
        ),
    ],
)

cdk.Aspects.of(app).add(AwsSolutionsChecks())
cdk.Aspects.of(app).add(NIST80053R5Checks())

app.synth()
