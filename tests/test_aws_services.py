# tests/test_aws_services.py
import json
from datetime import datetime, timezone
from unittest.mock import patch

from botocore.exceptions import ClientError

from backend.lib.s3_service import S3Service
from backend.lib.sns_service import SNSService


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "Operation")


@patch("backend.lib.sns_service.boto3")
def test_budget_alert_is_published(mock_boto3):
    sns = SNSService(topic_arn="arn:aws:sns:us-east-1:123:ElectricityAlerts")
    assert sns.send_budget_alert("asha@example.com", "2025-03", 1450.0, 1200.0) is True

    kwargs = mock_boto3.client.return_value.publish.call_args.kwargs
    assert kwargs["Subject"] == "Electricity budget exceeded - 2025-03"
    assert "Current Bill: 1450.00" in kwargs["Message"]
    assert "Budget: 1200.00" in kwargs["Message"]
    assert kwargs["MessageAttributes"] == {
        "owner_key": {"DataType": "String", "StringValue": "asha@example.com"}}


@patch("backend.lib.sns_service.boto3")
def test_subscription_only_matches_own_alerts(mock_boto3):
    client = mock_boto3.client.return_value
    client.subscribe.return_value = {"SubscriptionArn": "pending confirmation"}
    sns = SNSService(topic_arn="arn:aws:sns:us-east-1:123:ElectricityAlerts")

    assert sns.subscribe_email(" Asha@Example.com") == "pending confirmation"
    kwargs = client.subscribe.call_args.kwargs
    assert kwargs["Protocol"] == "email"
    assert json.loads(kwargs["Attributes"]["FilterPolicy"]) == {"owner_key": ["asha@example.com"]}

    sns.send_budget_alert("Bob@Example.com", "2025-03", 1450.0, 1200.0)
    published = client.publish.call_args.kwargs["MessageAttributes"]
    assert published["owner_key"]["StringValue"] == "bob@example.com"


@patch("backend.lib.sns_service.boto3")
def test_alert_without_topic_is_not_sent(mock_boto3, monkeypatch):
    monkeypatch.delenv("SNS_TOPIC_ARN", raising=False)
    sns = SNSService()
    assert sns.send_alert("subject", "message") is False
    mock_boto3.client.return_value.publish.assert_not_called()


@patch("backend.lib.sns_service.boto3")
def test_publish_failure_returns_false(mock_boto3):
    mock_boto3.client.return_value.publish.side_effect = client_error("AuthorizationError")
    sns = SNSService(topic_arn="arn:aws:sns:us-east-1:123:ElectricityAlerts")
    assert sns.send_alert("subject", "message") is False


@patch("backend.lib.s3_service.boto3")
def test_upload_key_is_per_owner(mock_boto3):
    s3 = S3Service(bucket_name="bucket")
    key = s3.upload_file(b"date,applianceName\n", "january.csv", "asha@example.com")
    assert key.startswith("uploads/asha@example.com/")
    assert key.endswith("_january.csv")
    mock_boto3.client.return_value.put_object.assert_called_once()


@patch("backend.lib.s3_service.boto3")
def test_list_files(mock_boto3):
    mock_boto3.client.return_value.list_objects_v2.return_value = {"Contents": [
        {"Key": "uploads/asha@example.com/a.csv", "Size": 10,
         "LastModified": datetime(2025, 1, 1, tzinfo=timezone.utc)},
    ]}
    files = S3Service(bucket_name="bucket").list_files("asha@example.com")
    assert files == [{"key": "uploads/asha@example.com/a.csv", "size": 10,
                      "last_modified": "2025-01-01T00:00:00+00:00"}]


@patch("backend.lib.s3_service.boto3")
def test_bucket_created_when_missing(mock_boto3, monkeypatch):
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    client = mock_boto3.client.return_value
    client.head_bucket.side_effect = client_error("404")
    assert S3Service(bucket_name="bucket").create_bucket_if_not_exists() is True
    client.create_bucket.assert_called_once_with(
        Bucket="bucket", CreateBucketConfiguration={"LocationConstraint": "eu-west-1"})
