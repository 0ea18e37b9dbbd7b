"""Main Lambda handler for WP Autopost."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from .config import Config
from .content import ContentBuilder
from .exceptions import AutopostError, ConfigError
from .images import ImageResolver
from .logging_config import create_execution_logger, setup_structured_logging
from .media import MediaPublisher
from .orchestrator import BatchOrchestrator
from .rss import FeedAggregator, FeedParser
from .selection import selection_policy_for
from .wordpress import WordPressClient

METRICS_NAMESPACE = "WP-Autopost"
SECRET_PASSWORD_KEYS = ("app_password", "wp_app_password", "password", "WP_APP_PASSWORD")

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Main Lambda handler that runs one RSS-to-WordPress batch.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status code and a JSON body
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    config = None
    orchestrator = None

    try:
        config = Config()
        batch_config = config.get_batch_config()

        app_password = None
        if config.uses_secret_password:
            app_password = get_app_password(
                config.wp_app_password_secret_name, config.aws_region, execution_id
            )
        wp_config = config.get_wordpress_config(app_password)

        feed_urls = config.get_feed_urls()
        main_logger.info(
            "Configuration initialized",
            feed_count=len(feed_urls),
            items_per_run=batch_config.items_per_run,
            selection_mode=batch_config.selection_mode,
        )

        session = requests.Session()
        client = WordPressClient(
            wp_config.base_url,
            wp_config.username,
            wp_config.app_password,
            session=session,
            timeout=wp_config.timeout,
            execution_id=execution_id,
        )
        parser = FeedParser(session, wp_config.timeout, execution_id)

        orchestrator = BatchOrchestrator(
            client=client,
            aggregator=FeedAggregator(parser, execution_id),
            resolver=ImageResolver(session, wp_config.timeout, execution_id),
            media_publisher=MediaPublisher(
                client, session, wp_config.timeout, execution_id
            ),
            builder=ContentBuilder(),
            policy=selection_policy_for(
                batch_config.selection_mode, batch_config.items_per_run
            ),
            category_id=wp_config.category_id,
            execution_id=execution_id,
        )

        result = orchestrator.run(feed_urls, batch_config.items_per_feed)

        if config.metrics_enabled:
            send_cloudwatch_metrics(
                orchestrator.metrics, config.aws_region, execution_id, success=True
            )

        main_logger.log_execution_end(success=True, metrics=orchestrator.metrics)

        return {
            "statusCode": 200,
            "body": json.dumps(
                {
                    **result.to_dict(),
                    "execution_id": execution_id,
                    "metrics": orchestrator.metrics,
                }
            ),
        }

    except Exception as e:
        if isinstance(e, AutopostError):
            error_msg = str(e)
        else:
            error_msg = f"Critical error in Lambda handler: {e}"
        main_logger.error(error_msg, error=str(e), error_type=type(e).__name__)

        metrics = orchestrator.metrics if orchestrator else {"errors": []}
        metrics["errors"].append(error_msg)

        if config is None or config.metrics_enabled:
            send_cloudwatch_metrics(
                metrics,
                config.aws_region if config else "us-east-1",
                execution_id,
                success=False,
            )

        main_logger.log_execution_end(success=False, error=error_msg)

        return {
            "statusCode": 500,
            "body": json.dumps(
                {
                    "success": False,
                    "error": error_msg,
                    "execution_id": execution_id,
                }
            ),
        }


def get_app_password(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the WordPress application password from AWS Secrets Manager.

    Both plain string secrets and JSON objects are supported. The secret
    value is never logged.

    Args:
        secret_name: Name of the secret in Secrets Manager
        aws_region: AWS region for Secrets Manager client
        execution_id: Execution ID for logging context

    Returns:
        The application password

    Raises:
        ConfigError: If the secret cannot be retrieved or holds no password
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ConfigError("Secret name cannot be empty")

    if not aws_region or not aws_region.strip():
        raise ConfigError("AWS region cannot be empty")

    secrets_logger.info(f"Retrieving WordPress password from Secrets Manager: {secret_name}")
    try:
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise ConfigError(f"Failed to retrieve secret {secret_name}") from e
    except BotoCoreError as e:
        secrets_logger.error(
            f"Unexpected error retrieving secret {secret_name}: {type(e).__name__}"
        )
        raise ConfigError(f"Failed to retrieve secret {secret_name}") from e

    secret_value = (response.get("SecretString") or "").strip()
    if not secret_value:
        raise ConfigError(f"Secret {secret_name} does not contain a string value")

    try:
        secret_data = json.loads(secret_value)
    except json.JSONDecodeError:
        secrets_logger.info("Using plain text secret")
        return secret_value

    if not isinstance(secret_data, dict):
        raise ConfigError(f"JSON secret {secret_name} must be an object")

    for key in SECRET_PASSWORD_KEYS:
        value = secret_data.get(key)
        if isinstance(value, str) and value.strip():
            secrets_logger.info("Using password from JSON secret", secret_key=key)
            return value.strip()

    raise ConfigError(f"No application password found in JSON secret {secret_name}")


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str, success: bool = True
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
        success: Whether the batch completed (False on a fatal abort)
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        errors = len(metrics.get("errors", []))
        execution_success = success and errors == 0
        posts_created = metrics.get("posts_created", 0)
        items_selected = metrics.get("items_selected", 0)
        execution_dimension = [{"Name": "ExecutionId", "Value": execution_id}]
        status_dimension = [
            {"Name": "Status", "Value": "Success" if execution_success else "Failure"}
        ]

        counters = [
            ("FeedsProcessed", "feeds_processed"),
            ("FeedsFailed", "feeds_failed"),
            ("ItemsFound", "items_found"),
            ("ItemsSelected", "items_selected"),
            ("PostsCreated", "posts_created"),
            ("PostsFailed", "posts_failed"),
            ("ImagesUploaded", "images_uploaded"),
        ]
        metric_data = [
            {
                "MetricName": name,
                "Value": metrics.get(key, 0),
                "Unit": "Count",
                "Dimensions": execution_dimension,
            }
            for name, key in counters
        ]
        metric_data += [
            {
                "MetricName": "Errors",
                "Value": errors,
                "Unit": "Count",
                "Dimensions": execution_dimension,
            },
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
            {
                "MetricName": "PublishSuccessRate",
                "Value": (posts_created / max(items_selected, 1)) * 100,
                "Unit": "Percent",
                "Dimensions": execution_dimension,
            },
        ]

        # CloudWatch accepts at most 20 metrics per call
        batch_size = 20
        for i in range(0, len(metric_data), batch_size):
            batch = metric_data[i : i + batch_size]
            cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=batch)

        metrics_logger.info(
            "Sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
            execution_success=execution_success,
        )

    except (BotoCoreError, ClientError) as e:
        # Metrics are best effort and never change the batch outcome
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
