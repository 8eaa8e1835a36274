"""
=============================================================================
S3 SERVICE - Amazon S3 backups of uploaded usage CSV files
=============================================================================
When USE_S3_STORAGE=true every CSV sent to /api/usage/upload is also kept
in S3, one folder per user.

Example:
    Bucket: electricity-tracker-uploads
    Key: uploads/asha@example.com/20251128T120000Z_january.csv
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

import os
from datetime import datetime, timezone
from typing import Dict, List, Optional


class S3Service:
    """
    A service class for interacting with Amazon S3.

    Usage:
        s3 = S3Service()
        s3.create_bucket_if_not_exists()
        s3.upload_file(b"date,applianceName,...", "january.csv", "asha@example.com")
    """

    def __init__(self, bucket_name: str = None):
        """
        AWS credentials are loaded from these environment variables:
        - AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY
        - AWS_SESSION_TOKEN (temporary credentials only)
        - AWS_REGION
        """
        self.bucket_name = bucket_name or os.getenv('S3_BUCKET_NAME', 'electricity-tracker-uploads')

        self.region = os.getenv('AWS_REGION', 'us-east-1')

        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.s3_client = boto3.client(
            's3',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

    def create_bucket_if_not_exists(self) -> bool:
        """
        Create the S3 bucket if it doesn't already exist.

        Note:
            Creating a bucket in us-east-1 must not pass a LocationConstraint.
        """
        try:
            # head_bucket is a lightweight existence check
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code != '404':
                # permissions, etc.
                print(f"Error checking bucket: {e}")
                return False

        try:
            if self.region == 'us-east-1':
                self.s3_client.create_bucket(Bucket=self.bucket_name)
            else:
                self.s3_client.create_bucket(
                    Bucket=self.bucket_name,
                    CreateBucketConfiguration={'LocationConstraint': self.region}
                )
            print(f"Created bucket: {self.bucket_name}")
            return True

        except ClientError as create_error:
            print(f"Failed to create bucket: {create_error}")
            return False

    def upload_file(self, file_content: bytes, filename: str, owner_key: str,
                    content_type: str = 'text/csv') -> Optional[str]:
        """
        Upload a file under uploads/<owner_key>/ with a timestamp prefix.

        Returns:
            str: The S3 key of the uploaded file, or None if failed
        """
        timestamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')
        s3_key = f"uploads/{owner_key}/{timestamp}_{filename}"

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=file_content,
                ContentType=content_type
            )
            return s3_key

        except ClientError as e:
            print(f"Failed to upload to S3: {e}")
            return None

    def list_files(self, owner_key: str) -> List[Dict]:
        """
        List the backed-up uploads of one user.

        Returns:
            list of {key, size, last_modified}
        """
        try:
            response = self.s3_client.list_objects_v2(
                Bucket=self.bucket_name,
                Prefix=f"uploads/{owner_key}/"
            )

            files = []
            for obj in response.get('Contents', []):
                files.append({
                    'key': obj['Key'],
                    'size': obj['Size'],
                    'last_modified': obj['LastModified'].isoformat()
                })
            return files

        except ClientError as e:
            print(f"Failed to list files: {e}")
            return []
