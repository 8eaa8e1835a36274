# backend/lambda_handlers/predict_bill.py
"""
Lambda function to predict next month's electricity bill
Triggered by API Gateway
"""
import json

from backend.lambda_handlers.get_summary import get_service, response
from backend.lib.home_energy_core.predictor import next_month_key, predict


def lambda_handler(event, context):
    """
    Average cost of the last 3 months with usage.

    Query parameters:
    - email: Required, the user's e-mail
    """
    print(f"Received event: {json.dumps(event)}")

    try:
        params = event.get('queryStringParameters') or {}
        email = params.get('email')

        if not email:
            return response(400, {'error': 'email is required'})

        prediction = predict(get_service().find_all_by_owner(email))
        body = prediction.to_dict()
        body['nextMonth'] = next_month_key(prediction.months[-1]) if prediction.months else None

        return response(200, body)

    except Exception as e:
        print(f"Error: {str(e)}")
        return response(500, {'error': str(e)})
