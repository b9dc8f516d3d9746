# tagdeploy/utils/aws_clients.py
import logging
import os
from typing import Callable, Optional

import boto3

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


def _region(region: Optional[str] = None) -> str:
    return region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or DEFAULT_REGION


def lambda_client(
    region: Optional[str] = None,
    profile: Optional[str] = None,
    session_factory: Callable[..., boto3.Session] = boto3.Session,
):
    """
    Build the one Lambda client a deploy run uses.

    The endpoint can be pointed at LocalStack with AWS_ENDPOINT_URL_LAMBDA.
    """
    session_kwargs = {"region_name": _region(region)}
    if profile:
        session_kwargs["profile_name"] = profile
    session = session_factory(**session_kwargs)

    kwargs = {}
    ep = os.environ.get("AWS_ENDPOINT_URL_LAMBDA")
    if ep:
        kwargs["endpoint_url"] = ep
    logger.debug("Creating lambda client in %s (profile=%s)", session_kwargs["region_name"], profile)
    return session.client("lambda", **kwargs)
