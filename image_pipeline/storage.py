"""
S3 object store used for ingress (fetch one object) and egress (upload a
whole directory of derived versions).
"""

import mimetypes
import os
import posixpath
from typing import List

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .constants import CACHE_MAX_AGE_SECONDS, LOG_PREFIX, UPLOAD_ACL
from .errors import EgressTransferError, IngressTransferError


def build_object_key(prefix: str, relative_path: str) -> str:
    """Join a destination prefix and a local relative path into an S3 key"""
    return posixpath.join(prefix, relative_path.replace(os.sep, '/'))


def cache_control_header(max_age_seconds: int) -> str:
    return f"max-age={max_age_seconds}"


class S3ObjectStore:
    """
    Thin wrapper over a boto3 S3 client.

    Args:
        client: boto3 S3 client; a default client is created when omitted
    """

    def __init__(self, client=None):
        self.client = client if client is not None else boto3.client('s3')

    def fetch(self, bucket: str, key: str) -> bytes:
        """
        Download one object into memory.

        Raises:
            IngressTransferError: object missing, access denied, network error
        """
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response['Body'].read()
        except (ClientError, BotoCoreError) as e:
            raise IngressTransferError(f"Could not fetch s3://{bucket}/{key}: {e}") from e

    def upload_directory(
        self,
        local_dir: str,
        bucket: str,
        prefix: str,
        acl: str = UPLOAD_ACL,
        cache_max_age: int = CACHE_MAX_AGE_SECONDS,
    ) -> List[str]:
        """
        Upload every file under local_dir (recursively) to s3://bucket/prefix/.

        Stops at the first failed upload. Objects written before the failure
        stay in the bucket.

        Returns:
            List of uploaded object keys

        Raises:
            EgressTransferError: on the first failed upload, or a directory
                under local_dir that cannot be listed
        """
        uploaded = []

        def walk_error(error):
            raise EgressTransferError(
                f"Could not list {error.filename} after {len(uploaded)} "
                f"successful upload(s): {error}",
                uploaded_keys=uploaded,
            ) from error

        for dirpath, _, filenames in os.walk(local_dir, onerror=walk_error):
            for filename in sorted(filenames):
                local_path = os.path.join(dirpath, filename)
                key = build_object_key(prefix, os.path.relpath(local_path, local_dir))

                extra_args = {
                    'ACL': acl,
                    'CacheControl': cache_control_header(cache_max_age),
                }
                content_type, _ = mimetypes.guess_type(filename)
                if content_type:
                    extra_args['ContentType'] = content_type

                try:
                    self.client.upload_file(local_path, bucket, key, ExtraArgs=extra_args)
                except (Boto3Error, ClientError, BotoCoreError, OSError) as e:
                    raise EgressTransferError(
                        f"Upload of s3://{bucket}/{key} failed after "
                        f"{len(uploaded)} successful upload(s): {e}",
                        uploaded_keys=uploaded,
                    ) from e

                print(f"{LOG_PREFIX}: Uploaded s3://{bucket}/{key}")
                uploaded.append(key)

        return uploaded
