"""
=============================================================================
DYNAMODB SERVICE - Amazon DynamoDB storage for usage records and users
=============================================================================
Used instead of the local JSONL store when USE_DYNAMODB=true.

Key DynamoDB Concepts:
---------------------
1. Table: A collection of items
2. Item: A single record
3. Primary Key: Unique identifier for each item
   - Partition Key (HASH): Distributes data across partitions
   - Sort Key (RANGE): Orders items within a partition

Our Table Schemas:
------------------
Table: UsageRecords
- owner_key (String) - Partition Key - All records of one user
- date_id (String)   - Sort Key - "<ISO date>#<record id>"
                       Sorting by this key sorts records by date, and the
                       record id keeps two records on the same day distinct.
- appliance_name, watts, hours_per_day, days, kwh, cost (Number as Decimal)
- created_at (String) - When the item was inserted

Table: Users
- email (String) - Partition Key
- name, password_hash

Example UsageRecords item:
{
    "owner_key": "asha@example.com",
    "date_id": "2025-01-15T00:00:00+00:00#3f2c9a...",
    "record_id": "3f2c9a...",
    "date": "2025-01-15T00:00:00+00:00",
    "appliance_name": "Fridge",
    "watts": 150, "hours_per_day": 24, "days": 30,
    "kwh": 108.0, "cost": 864.0,
    "created_at": "2025-11-28T10:30:00+00:00"
}
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# Key - builds KeyConditionExpression for queries
from boto3.dynamodb.conditions import Key

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

import os
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from backend.lib.home_energy_core.io import normalize_owner_key, parse_date
from backend.lib.home_energy_core.models import UsageRecord, User


def _decimal(value: float) -> Decimal:
    # DynamoDB rejects float; go through str to keep the printed value
    return Decimal(str(value))


def record_to_item(record: UsageRecord) -> Dict:
    date_text = record.date.isoformat()
    return {
        'owner_key': record.owner_key,
        'date_id': f"{date_text}#{record.record_id}",
        'record_id': record.record_id,
        'date': date_text,
        'appliance_name': record.appliance_name,
        'watts': _decimal(record.watts),
        'hours_per_day': _decimal(record.hours_per_day),
        'days': _decimal(record.days),
        'kwh': _decimal(record.kwh),
        'cost': _decimal(record.cost),
        'created_at': datetime.now(timezone.utc).isoformat(),
    }


def item_to_record(item: Dict) -> UsageRecord:
    # Decimal back to float
    return UsageRecord(
        owner_key=item['owner_key'],
        date=parse_date(item['date']),
        appliance_name=item['appliance_name'],
        watts=float(item['watts']),
        hours_per_day=float(item['hours_per_day']),
        days=float(item['days']),
        kwh=float(item['kwh']),
        cost=float(item['cost']),
        record_id=item.get('record_id'),
    )


class DynamoDBService:
    """
    A service class for storing usage records and users in DynamoDB.

    Offers the record store methods used by the app:
    - insert(record)
    - insert_many(records)
    - find_all_by_owner(owner_key)
    and the user methods used by DynamoUserDirectory:
    - put_user(user)
    - get_user(email)

    Usage:
        db = DynamoDBService()
        db.create_table_if_not_exists()
        db.insert(record)
    """

    def __init__(self, table_name: str = None, users_table_name: str = None):
        """
        Reads AWS credentials from environment variables and creates the
        boto3 resource (high-level, Table objects) and client (describe_table).
        """
        self.table_name = table_name or os.getenv('DYNAMODB_TABLE_NAME', 'UsageRecords')
        self.users_table_name = users_table_name or os.getenv('DYNAMODB_USERS_TABLE_NAME', 'Users')

        self.region = os.getenv('AWS_REGION', 'us-east-1')

        # Session token is only set for temporary credentials
        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.dynamodb = boto3.resource(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

        self.client = boto3.client(
            'dynamodb',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

        self.table = self.dynamodb.Table(self.table_name)
        self.users_table = self.dynamodb.Table(self.users_table_name)

    def _ensure_table(self, name: str, hash_key: str, range_key: Optional[str] = None) -> bool:
        try:
            # If no exception, table exists
            self.client.describe_table(TableName=name)
            print(f"DynamoDB table '{name}' exists")
            return True

        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                print(f"Error checking table: {e}")
                return False

        key_schema = [{'AttributeName': hash_key, 'KeyType': 'HASH'}]
        attributes = [{'AttributeName': hash_key, 'AttributeType': 'S'}]
        if range_key:
            key_schema.append({'AttributeName': range_key, 'KeyType': 'RANGE'})
            attributes.append({'AttributeName': range_key, 'AttributeType': 'S'})

        try:
            table = self.dynamodb.create_table(
                TableName=name,
                KeySchema=key_schema,
                AttributeDefinitions=attributes,
                # On-demand pricing, no capacity planning needed
                BillingMode='PAY_PER_REQUEST'
            )
            table.wait_until_exists()
            print(f"Created DynamoDB table '{name}'")
            return True

        except ClientError as create_error:
            print(f"Failed to create table: {create_error}")
            return False

    def create_table_if_not_exists(self) -> bool:
        """
        Create the UsageRecords and Users tables if they don't exist.

        Returns:
            bool: True if both tables exist or were created successfully
        """
        usage_ok = self._ensure_table(self.table_name, 'owner_key', 'date_id')
        users_ok = self._ensure_table(self.users_table_name, 'email')
        return usage_ok and users_ok

    def insert(self, record: UsageRecord) -> Optional[UsageRecord]:
        """
        Store a single usage record.

        Returns:
            The stored record (with a record id), or None if the write failed
        """
        if record.record_id is None:
            record = replace(record, record_id=uuid.uuid4().hex)

        try:
            self.table.put_item(Item=record_to_item(record))
            return record

        except ClientError as e:
            print(f"Failed to put usage record: {e}")
            return None

    def insert_many(self, records: Iterable[UsageRecord]) -> int:
        """
        Store many records with batch_writer (25 items per request).

        Returns:
            int: Number of successfully written items
        """
        records = [r if r.record_id else replace(r, record_id=uuid.uuid4().hex) for r in records]
        success_count = 0

        batch_size = 25
        for i in range(0, len(records), batch_size):
            batch = records[i:i + batch_size]
            try:
                with self.table.batch_writer() as writer:
                    for r in batch:
                        writer.put_item(Item=record_to_item(r))
                success_count += len(batch)

            except ClientError as e:
                print(f"Batch write error: {e}")

        return success_count

    def find_all_by_owner(self, owner_key: str) -> List[UsageRecord]:
        """
        All records for one owner, oldest first.

        Query returns items ordered by the sort key (date_id), which starts
        with the ISO date. Results are paginated at 1MB per response.
        """
        condition = Key('owner_key').eq(normalize_owner_key(owner_key))

        try:
            response = self.table.query(KeyConditionExpression=condition)
            items = list(response.get('Items', []))

            while 'LastEvaluatedKey' in response:
                response = self.table.query(
                    KeyConditionExpression=condition,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            print(f"Failed to get usage records: {e}")
            return []

        records = [item_to_record(item) for item in items]
        records.sort(key=lambda r: r.date)
        return records

    def put_user(self, user: User) -> bool:
        """
        Store a new user. The write is conditional on the e-mail being
        unused, so an existing account is never replaced.

        Raises:
            ClientError: ConditionalCheckFailedException if the e-mail
                is already registered
        """
        try:
            self.users_table.put_item(
                Item={
                    'email': user.email,
                    'name': user.name,
                    'password_hash': user.password_hash,
                },
                ConditionExpression='attribute_not_exists(email)'
            )
            return True

        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise
            print(f"Failed to put user: {e}")
            return False

    def get_user(self, email: str) -> Optional[Dict]:
        try:
            response = self.users_table.get_item(Key={'email': email})
        except ClientError as e:
            print(f"Failed to get user: {e}")
            raise RuntimeError("Failed to read user") from e
        return response.get('Item')
