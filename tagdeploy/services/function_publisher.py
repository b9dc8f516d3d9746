# tagdeploy/services/function_publisher.py
import logging

from botocore.exceptions import BotoCoreError, ClientError

from tagdeploy.models.deployment import PublishedFunction
from tagdeploy.models.errors import PublishError

logger = logging.getLogger(__name__)


class FunctionPublisher:
    def __init__(self, lambda_client):
        self.lambda_client = lambda_client

    def publish(self, function_name: str, artifact_bytes: bytes) -> PublishedFunction:
        """
        Upload new code for `function_name` and publish it as a new numbered
        version. Every call creates a version; nothing is retried.
        """
        try:
            logger.info("Uploading %d bytes to %s", len(artifact_bytes), function_name)
            config = self.lambda_client.update_function_code(
                FunctionName=function_name,
                ZipFile=artifact_bytes,
                Publish=True,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("Lambda rejected code update for %s: %s", function_name, code)
            raise PublishError(f"Failed to update {function_name}: {e}") from e
        except BotoCoreError as e:
            logger.error("Could not reach Lambda to update %s: %s", function_name, e)
            raise PublishError(f"Failed to update {function_name}: {e}") from e

        name, version = config.get("FunctionName"), config.get("Version")
        if not name or not version:
            raise PublishError(f"Lambda response for {function_name} has no FunctionName or Version")

        logger.info("Published %s version %s", name, version)
        return PublishedFunction(function_name=name, version=version)
