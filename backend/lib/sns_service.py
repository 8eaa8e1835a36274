"""
=============================================================================
SNS SERVICE - Over-budget e-mail alerts through Amazon SNS
=============================================================================
When USE_SNS=true, /api/usage/budget publishes an alert to the topic if the
latest month's bill is above the user's budget. Subscribers confirm their
e-mail once (AWS sends the confirmation link). Every subscription carries a
filter policy on the owner_key message attribute, so a user only receives
the alerts published for their own account.

Flow:
-----
[Tracker] --(owner_key=a)--> [SNS Topic: ElectricityAlerts] --> [Subscriber a]
                                                          -x-> [Subscriber b]
=============================================================================
"""

# boto3 - AWS SDK for Python
import boto3

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

import json
import os
from typing import Dict, Optional

from backend.lib.home_energy_core.io import normalize_owner_key


class SNSService:
    """
    A service class for sending notifications via Amazon SNS.

    Usage:
        sns = SNSService()
        sns.create_topic_if_not_exists()
        sns.subscribe_email("user@example.com")
        sns.send_budget_alert("user@example.com", "2025-03", 1450.0, 1200.0)
    """

    def __init__(self, topic_arn: str = None):
        """
        Environment Variables Used:
        - SNS_TOPIC_ARN: The ARN of an existing topic
        - SNS_TOPIC_NAME: Name for creating new topic
        - AWS credentials (ACCESS_KEY, SECRET_KEY, SESSION_TOKEN)
        """
        self.topic_arn = topic_arn or os.getenv('SNS_TOPIC_ARN')

        self.topic_name = os.getenv('SNS_TOPIC_NAME', 'ElectricityAlerts')

        self.region = os.getenv('AWS_REGION', 'us-east-1')

        session_token = os.getenv('AWS_SESSION_TOKEN')

        self.sns_client = boto3.client(
            'sns',
            region_name=self.region,
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=session_token if session_token else None
        )

    def create_topic_if_not_exists(self) -> Optional[str]:
        """
        create_topic is idempotent: an existing topic's ARN is returned.

        Returns:
            str: The topic ARN, or None if creation failed
        """
        try:
            response = self.sns_client.create_topic(Name=self.topic_name)
            self.topic_arn = response['TopicArn']
            print(f"SNS topic ready: {self.topic_arn}")
            return self.topic_arn

        except ClientError as e:
            print(f"Failed to create SNS topic: {e}")
            return None

    def subscribe_email(self, email: str) -> Optional[str]:
        """
        Subscribe an email address to receive alerts.

        Until the user clicks the confirmation link the subscription
        status is "PendingConfirmation". The filter policy limits delivery
        to messages whose owner_key attribute is this address.
        """
        if not self.topic_arn:
            print("No topic ARN configured")
            return None

        try:
            response = self.sns_client.subscribe(
                TopicArn=self.topic_arn,
                Protocol='email',
                Endpoint=normalize_owner_key(email),
                Attributes={
                    'FilterPolicy': json.dumps({'owner_key': [normalize_owner_key(email)]})
                }
            )
            return response['SubscriptionArn']

        except ClientError as e:
            print(f"Failed to subscribe email: {e}")
            return None

    def send_alert(self, subject: str, message: str,
                   message_attributes: Optional[Dict] = None) -> bool:
        """
        Publish a message to the topic.

        Without message_attributes only subscribers with no filter policy
        receive it.

        Args:
            subject: Email subject line (max 100 characters)
            message: The message body
            message_attributes: SNS MessageAttributes used for filtering
        """
        if not self.topic_arn:
            print("No topic ARN configured")
            return False

        try:
            self.sns_client.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=message,
                MessageAttributes=message_attributes or {}
            )
            return True

        except ClientError as e:
            print(f"Failed to send alert: {e}")
            return False

    def send_budget_alert(self, owner_key: str, month: str, cost: float, budget: float) -> bool:
        """
        Tell a user their bill for `month` is above their budget.

        Example Email:
            Subject: Electricity budget exceeded - 2025-03

            Account: asha@example.com
            Month: 2025-03
            Current Bill: 1450.00
            Budget: 1200.00
        """
        subject = f"Electricity budget exceeded - {month}"

        message = f"""
Electricity Budget Alert

Account: {owner_key}
Month: {month}

Current Bill: {cost:.2f}
Budget: {budget:.2f}

Your electricity bill for this month has gone over your budget.
Check which appliances used the most energy on your dashboard.

---
Electricity Tracker App
        """.strip()

        attributes = {
            'owner_key': {'DataType': 'String', 'StringValue': normalize_owner_key(owner_key)}
        }
        return self.send_alert(subject, message, attributes)
