from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    import boto3


class S3Settings(BaseSettings):
    """Settings for the S3 client and the batch engine defaults.

    You can adapt the following settings in your environment variables (or using and .env file):
    - S3_ENDPOINT_URL: The URL of the S3 server (unset for AWS)
    - S3_REGION: The region of the S3 server
    - S3_AWS_ACCESS_KEY_ID: The access key ID for the S3 client
    - S3_AWS_SECRET_ACCESS_KEY: The secret access key for the S3 client
    - S3_CONTEXT: Initial working context, e.g. "s3://bucket/path/to/folder"
    - S3_MARKER: Key to resume listing after
    - S3_ENCODING: Encoding of object bodies
    - S3_VERBOSE: Log every store call at INFO level
    - S3_PAGE_SIZE: Maximum number of keys per listing page

    If the access keys are not set, boto3 falls back to its default credential chain.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="S3_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # The endpoint URL of the S3 server
    endpoint_url: str | None = None

    # The region of the S3 server
    region: str = "us-east-1"

    # The access key ID for the S3 client
    aws_access_key_id: str | None = None

    # The secret access key for the S3 client
    aws_secret_access_key: str | None = None

    # Initial working context
    context: str | None = None

    # Key to resume listing after
    marker: str = ""

    # Encoding of object bodies
    encoding: str = "utf-8"

    # Log every store call at INFO level
    verbose: bool = False

    # Maximum number of keys per listing page
    page_size: int = 1000

    def create_client(self) -> boto3.client:
        """Create a S3 client from the settings."""

        import boto3

        return boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=self.aws_access_key_id,
            aws_secret_access_key=self.aws_secret_access_key,
        )
