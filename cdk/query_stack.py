# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from aws_cdk import aws_rds as rds
from aws_cdk import CfnOutput
from aws_cdk import Duration
from aws_cdk import RemovalPolicy
from aws_cdk import Stack
from constructs import Construct


class QueryStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Config

        vpc_cidr = self.node.try_get_context("vpc_cidr")
        database_username = self.node.try_get_context("database_username")
        database_name = self.node.try_get_context("database_name")
        python_version = self.node.try_get_context("python_version")
        log_level = self.node.try_get_context("log_level") or "INFO"
        database_account_iam_role = self.node.try_get_context(
            "database_account_iam_role",
        )

        POSTGRESQL_PORT = 5432

        # Networking

        cw_group = logs.LogGroup(
            self,
            "QueryVpcFlowLogsCWGroup",
            log_group_name="query-vpc-flow-logs",
            removal_policy=RemovalPolicy.DESTROY,
            retention=logs.RetentionDays.ONE_DAY,
        )

        vpc = ec2.Vpc(
            self,
            "QueryVpc",
            vpc_name="query_vpc",
            ip_addresses=ec2.IpAddresses.cidr(vpc_cidr),
            restrict_default_security_group=True,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="application",
                    cidr_mask=27,
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                ),
                ec2.SubnetConfiguration(
                    name="database",
                    cidr_mask=27,
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                ),
                ec2.SubnetConfiguration(
                    name="public",
                    cidr_mask=27,
                    subnet_type=ec2.SubnetType.PUBLIC,
                ),
            ],
        )

        ec2.FlowLog(
            self,
            "QueryVpcFlowLog",
            resource_type=ec2.FlowLogResourceType.from_vpc(vpc),
            destination=ec2.FlowLogDestination.to_cloud_watch_logs(cw_group),
            flow_log_name="query-vpc-flow-logs",
        )

        rds_sg = ec2.SecurityGroup(
            self,
            "RdsInstanceSecurityGroup",
            vpc=vpc,
            description="RDS instance security group",
            allow_all_outbound=False,
            security_group_name="query-rds-sg",
        )

        query_lambda_sg = ec2.SecurityGroup(
            self,
            "query-lambda-sg",
            vpc=vpc,
            description="Security group allowing access from query lambda to the RDS instance for PostgreSQL traffic and to AWS APIs for HTTPS traffic",
            security_group_name="query-lambda-sg",
            allow_all_outbound=False,
        )

        query_lambda_sg.connections.allow_to(
            rds_sg,
            ec2.Port.tcp(POSTGRESQL_PORT),
            "Allow outbound PostgreSQL access from query lambda to the RDS instance",
        )

        query_lambda_sg.add_egress_rule(
            ec2.Peer.any_ipv4(),
            ec2.Port.tcp(443),
            description="Allow outbound HTTPS access from query lambda to AWS APIs",
        )

        # RDS

        db_instance = rds.DatabaseInstance(
            self,
            "PostgreSQLInstance",
            engine=rds.DatabaseInstanceEngine.postgres(
                version=rds.PostgresEngineVersion.VER_15,
            ),
            instance_type=ec2.InstanceType.of(
                ec2.InstanceClass.BURSTABLE3,
                ec2.InstanceSize.MICRO,
            ),
            credentials=rds.Credentials.from_generated_secret("postgres"),
            database_name=database_name,
            allocated_storage=20,
            cloudwatch_logs_exports=["postgresql"],
            deletion_protection=False,
            removal_policy=RemovalPolicy.DESTROY,
            iam_authentication=True,
            security_groups=[rds_sg],
            monitoring_interval=Duration.seconds(60),
            storage_encrypted=True,
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
            ),
        )

        db_instance.add_rotation_single_user(
            automatically_after=Duration.days(30),
        )

        # IAM

        query_lambda_role = iam.Role(
            self,
            "query-lambda-role",
            description="IAM role for the Query Lambda function",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
        )

        query_lambda_role.add_managed_policy(
            iam.ManagedPolicy(
                self,
                "lambda_execution_policy",
                description="Allows Lambda function to write to log groups and attach to the VPC",
                managed_policy_name="query-lambda-basic-execution-policy",
                document=iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            actions=[
                                "logs:CreateLogGroup",
                                "logs:CreateLogStream",
                                "logs:PutLogEvents",
                            ],
                            resources=["*"],
                        ),
                        iam.PolicyStatement(
                            actions=[
                                "ec2:DescribeNetworkInterfaces",
                                "ec2:CreateNetworkInterface",
                                "ec2:DeleteNetworkInterface",
                                "ec2:DescribeInstances",
                                "ec2:AttachNetworkInterface",
                            ],
                            resources=["*"],
                        ),
                    ],
                ),
            ),
        )

        db_instance.grant_connect(query_lambda_role, database_username)

        environment = {
            "DB_HOST": db_instance.db_instance_endpoint_address,
            "DB_USERNAME": database_username,
            "DBNAME": database_name,
            "DB_SSL_MODE": "require",
            "LOG_LEVEL": log_level,
        }

        if database_account_iam_role:
            query_lambda_role.add_to_policy(
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["sts:AssumeRole"],
                    resources=[database_account_iam_role],
                ),
            )
            environment["DATABASE_ACCOUNT_IAM_ROLE"] = database_account_iam_role

        # Lambda

        python_runtime = _lambda.Runtime(f"python{python_version}")

        psycopg2_layer = _lambda.LayerVersion(
            self,
            "psycopg2-layer",
            layer_version_name="psycopg2",
            code=_lambda.Code.from_asset("assets/layers/psycopg2/layer.zip"),
            compatible_runtimes=[
                python_runtime,
            ],
            compatible_architectures=[_lambda.Architecture.X86_64],
        )

        query_lambda = _lambda.Function(
            self,
            "query-lambda",
            runtime=python_runtime,
            code=_lambda.Code.from_asset("assets/lambda/code/"),
            function_name="query-lambda",
            handler="query_handler.handler",
            layers=[psycopg2_layer],
            memory_size=1024,
            timeout=Duration.seconds(30),
            role=query_lambda_role,
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
            ),
            security_groups=[query_lambda_sg],
            tracing=_lambda.Tracing.ACTIVE,
            reserved_concurrent_executions=5,
            environment=environment,
        )

        # CFN Outputs

        CfnOutput(
            self,
            "QueryLambdaName",
            value=query_lambda.function_name,
            description="Query Lambda function name",
        )

        CfnOutput(
            self,
            "DatabaseEndpoint",
            value=db_instance.db_instance_endpoint_address,
            description="RDS instance endpoint",
        )
