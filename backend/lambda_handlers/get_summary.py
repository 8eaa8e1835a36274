# backend/lambda_handlers/get_summary.py
"""
Lambda function to get a user's usage summary
Triggered by API Gateway
"""
import json

from backend.lib.dynamodb_service import DynamoDBService
from backend.lib.home_energy_core.processor import summarize

# Created on first invocation and reused while the container is warm
_service = None


def get_service() -> DynamoDBService:
    global _service
    if _service is None:
        _service = DynamoDBService()
    return _service


def lambda_handler(event, context):
    """
    Summary of usage per appliance, per day and per month.

    Query parameters:
    - email: Required, the user's e-mail
    """
    print(f"Received event: {json.dumps(event)}")

    try:
        params = event.get('queryStringParameters') or {}
        email = params.get('email')

        if not email:
            return response(400, {'error': 'email is required'})

        records = get_service().find_all_by_owner(email)
        return response(200, summarize(records).to_dict())

    except Exception as e:
        print(f"Error: {str(e)}")
        return response(500, {'error': str(e)})


def response(status_code: int, body: dict) -> dict:
    """Create API Gateway response."""
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        },
        'body': json.dumps(body)
    }
