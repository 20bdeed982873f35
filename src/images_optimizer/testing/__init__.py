"""Testing utilities and fakes for the images optimizer."""

from .fakes import (
    FakeKeyProvider,
    FakeS3Client,
    FakeLogger,
    InterruptedStream,
    S3Object,
    S3Bucket,
    create_test_image,
    setup_test_s3_environment,
)

__all__ = [
    "FakeKeyProvider",
    "FakeS3Client",
    "FakeLogger",
    "InterruptedStream",
    "S3Object",
    "S3Bucket",
    "create_test_image",
    "setup_test_s3_environment",
]
