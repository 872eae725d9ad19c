"""
Shared fixtures for unit tests
"""

import io
import os

import pytest
from PIL import Image

# boto3 clients are created at import time in the Lambda module
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

from image_pipeline import reset_config


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from the default process-wide configuration"""
    reset_config()
    yield
    reset_config()


def make_image_bytes(size=(800, 400), image_format='JPEG', mode='RGB', color='red'):
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes()
