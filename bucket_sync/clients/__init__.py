# Client packages
from .s3_manager import S3Manager

__all__ = ['S3Manager']
