"""
=============================================================================
ELECTRICITY TRACKER - MAIN FLASK APPLICATION
=============================================================================
Backend for the household electricity dashboard. Users log how long their
appliances run; the API turns that into kWh and cost, and serves:
- per-appliance / per-day / per-month summaries
- a next-month bill prediction (average of the last 3 months)
- a budget check with optional e-mail alert (SNS)
- bulk CSV upload with optional S3 backup

Storage is a local JSON Lines file by default, or DynamoDB when enabled.

How to run:
    python -m backend.app

Then call the API on http://127.0.0.1:5000/api/...
=============================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================

from flask import Flask, request, jsonify

# flask_cors - the dashboard is served from a different origin than the API
from flask_cors import CORS

import os
from pathlib import Path

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

# Must be called before accessing any environment variables
load_dotenv()

from backend.lib.home_energy_core.estimator import DEFAULT_RATE_PER_UNIT
from backend.lib.home_energy_core.io import (
    normalize_owner_key,
    parse_csv_string,
    parse_number,
    record_from_request,
    record_to_dict,
)
from backend.lib.home_energy_core.predictor import budget_status, next_month_key, predict
from backend.lib.home_energy_core.processor import summarize
from backend.lib.record_store import LocalRecordStore
from backend.lib.user_directory import (
    CredentialVerifier,
    DynamoUserDirectory,
    LocalUserDirectory,
    UserExistsError,
)

# =============================================================================
# CONFIGURATION
# =============================================================================

# Tariff used when a request does not send ratePerUnit
DEFAULT_RATE = float(os.getenv('DEFAULT_RATE_PER_UNIT', str(DEFAULT_RATE_PER_UNIT)))

# Local storage directory (used when DynamoDB is not enabled)
DATA_DIR = Path(os.getenv('DATA_DIR', 'backend/data'))

CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

# =============================================================================
# AWS SERVICE INITIALIZATION
# =============================================================================
# Each AWS service is switched on by an environment variable. If one fails
# to start, the app keeps running on local storage / without that feature.

# -----------------------------------------------------------------------------
# DYNAMODB - usage records and users
# -----------------------------------------------------------------------------
USE_DYNAMODB = os.getenv('USE_DYNAMODB', 'false').lower() == 'true'
dynamodb_service = None

if USE_DYNAMODB:
    try:
        from backend.lib.dynamodb_service import DynamoDBService
        dynamodb_service = DynamoDBService()
        if not dynamodb_service.create_table_if_not_exists():
            raise RuntimeError("tables not available")
        print("DynamoDB storage enabled")
    except Exception as e:
        print(f"DynamoDB initialization failed: {e}. Using local storage.")
        USE_DYNAMODB = False
        dynamodb_service = None

# -----------------------------------------------------------------------------
# S3 - backups of uploaded CSV files
# -----------------------------------------------------------------------------
USE_S3 = os.getenv('USE_S3_STORAGE', 'false').lower() == 'true'
s3_service = None

if USE_S3:
    try:
        from backend.lib.s3_service import S3Service
        s3_service = S3Service()
        s3_service.create_bucket_if_not_exists()
        print("S3 storage enabled")
    except Exception as e:
        print(f"S3 initialization failed: {e}. Uploads will not be backed up.")
        USE_S3 = False
        s3_service = None

# -----------------------------------------------------------------------------
# SNS - over-budget e-mail alerts
# -----------------------------------------------------------------------------
USE_SNS = os.getenv('USE_SNS', 'false').lower() == 'true'
sns_service = None

if USE_SNS:
    try:
        from backend.lib.sns_service import SNSService
        sns_service = SNSService()
        sns_service.create_topic_if_not_exists()
        print("SNS notifications enabled")
    except Exception as e:
        print(f"SNS initialization failed: {e}. Notifications disabled.")
        USE_SNS = False
        sns_service = None

# -----------------------------------------------------------------------------
# STORES
# -----------------------------------------------------------------------------
if USE_DYNAMODB:
    record_store = dynamodb_service
    user_directory = DynamoUserDirectory(dynamodb_service)
else:
    record_store = LocalRecordStore(DATA_DIR)
    user_directory = LocalUserDirectory(DATA_DIR)

credential_verifier = CredentialVerifier(user_directory)

# (owner_key, month) pairs that already got a budget alert from this process
alerted_months = set()

# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

app = Flask(__name__)
CORS(app, resources={r"/api/*": {"origins": CORS_ORIGINS}})

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def load_records(email: str):
    """
    Snapshot of one user's usage records, oldest first.
    """
    return record_store.find_all_by_owner(normalize_owner_key(email))


def json_object() -> dict:
    """
    The request's JSON body, or {} when it is missing or not an object.
    """
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def text_fields(data: dict, *names):
    """
    Values of the named body fields. None if any is missing, blank or
    not a string.
    """
    values = [data.get(name) for name in names]
    if not all(isinstance(v, str) and v.strip() for v in values):
        return None
    return values

# =============================================================================
# API ROUTES - AUTH
# =============================================================================

@app.route("/api/signup", methods=["POST"])
def signup():
    """
    Register a user.

    Request Body (JSON):
        {"name": "Asha", "email": "asha@example.com", "password": "secret"}

    HTTP Status Codes:
        201: Created
        400: Missing fields or e-mail already registered
    """
    fields = text_fields(json_object(), "name", "email", "password")
    if fields is None:
        return jsonify({"error": "All fields are required"}), 400
    name, email, password = fields

    try:
        user = user_directory.create_user(name, email, password)
    except UserExistsError as e:
        return jsonify({"error": str(e)}), 400
    except RuntimeError as e:
        app.logger.error("Signup failed for %s: %s", email, e)
        return jsonify({"error": "Failed to save user"}), 500

    return jsonify({
        "message": "Signup successful",
        "email": user.email,
        "name": user.name
    }), 201


@app.route("/api/login", methods=["POST"])
def login():
    """
    Check a user's credentials. No session or token is issued; the
    dashboard keeps the returned e-mail and sends it with each request.

    HTTP Status Codes:
        200: Login successful
        400: Missing fields
        401: Invalid credentials
        500: The user directory could not be read
    """
    fields = text_fields(json_object(), "email", "password")
    if fields is None:
        return jsonify({"error": "Email and password required"}), 400
    email, password = fields

    try:
        if not credential_verifier.verify(normalize_owner_key(email), password):
            return jsonify({"error": "Invalid credentials"}), 401
        user = user_directory.find_user(email)
    except RuntimeError as e:
        app.logger.error("Login failed for %s: %s", email, e)
        return jsonify({"error": "Failed to read user"}), 500

    return jsonify({
        "message": "Login successful",
        "email": user.email,
        "name": user.name
    })

# =============================================================================
# API ROUTES - USAGE
# =============================================================================

@app.route("/api/usage", methods=["POST"])
def add_usage():
    """
    Log one appliance usage record.

    Request Body (JSON):
        {
            "userEmail": "asha@example.com",
            "date": "2025-01-15",
            "applianceName": "Fridge",
            "watts": 150,
            "hoursPerDay": 24,
            "days": 30,
            "ratePerUnit": 8          (optional)
        }

    kWh and cost are computed here and stored with the record.

    HTTP Status Codes:
        201: Created, body is the stored record
        400: Missing or invalid fields
        500: The store could not save the record
    """
    try:
        record = record_from_request(json_object(), DEFAULT_RATE)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    saved = record_store.insert(record)
    if saved is None:
        app.logger.error("Failed to save usage record for %s", record.owner_key)
        return jsonify({"error": "Failed to save usage"}), 500

    return jsonify(record_to_dict(saved)), 201


@app.route("/api/usage", methods=["GET"])
def list_usage():
    """
    All usage records of a user, oldest first.

    Query Parameters:
        email (required)
    """
    email = request.args.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400

    return jsonify([record_to_dict(r) for r in load_records(email)])


@app.route("/api/usage/summary", methods=["GET"])
def usage_summary():
    """
    Totals per appliance, per day and per month.

    Query Parameters:
        email (required)

    Example Response:
        {
            "perAppliance": {"Fridge": 108.0},
            "perDate": {"2025-01-15": 108.0},
            "perMonthCost": {"2025-01": 864.0},
            "totalKWh": 108.0,
            "totalCost": 864.0
        }
    """
    email = request.args.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400

    summary = summarize(load_records(email))
    return jsonify(summary.to_dict())


@app.route("/api/usage/prediction", methods=["GET"])
def usage_prediction():
    """
    Next month's bill as the average of the last 3 months with usage.

    Query Parameters:
        email (required)

    Example Response:
        {
            "months": ["2025-01", "2025-02", "2025-03"],
            "costs": [100.0, 200.0, 300.0],
            "predictedCost": 200.0,
            "nextMonth": "2025-04"
        }
    """
    email = request.args.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400

    prediction = predict(load_records(email))
    body = prediction.to_dict()
    body["nextMonth"] = next_month_key(prediction.months[-1]) if prediction.months else None
    return jsonify(body)


@app.route("/api/usage/budget", methods=["GET"])
def usage_budget():
    """
    Compare the latest month's bill with the user's budget.

    "Latest month" is the most recent month that has any usage logged,
    not the calendar month of today.

    Query Parameters:
        email (required)
        budget (required): amount in the same currency as the costs

    If the bill is over budget and SNS is enabled, an alert e-mail is sent
    once per user and month; later checks report alertSent: false.
    """
    email = request.args.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400

    try:
        budget = parse_number("budget", request.args.get("budget"), positive=False)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    owner_key = normalize_owner_key(email)
    summary = summarize(load_records(owner_key))
    status = budget_status(summary.per_month_cost, budget)
    body = status.to_dict()

    if status.over_budget and USE_SNS and sns_service:
        if (owner_key, status.month) in alerted_months:
            body["alertSent"] = False
        else:
            sent = sns_service.send_budget_alert(owner_key, status.month,
                                                 status.current_month_cost, budget)
            if sent:
                alerted_months.add((owner_key, status.month))
            else:
                app.logger.warning("Budget alert for %s was not sent", owner_key)
            body["alertSent"] = sent

    return jsonify(body)


@app.route("/api/usage/upload", methods=["POST"])
def upload_usage():
    """
    Bulk-load usage records from a CSV file.

    Form Data:
        file (required): CSV with header
                         date,applianceName,watts,hoursPerDay,days[,ratePerUnit]
        email (required)
        ratePerUnit (optional): default tariff for rows without one

    HTTP Status Codes:
        202: Accepted, body has uploadId and processedCount
        400: No file, no e-mail, or a bad row (nothing is stored)
        500: The store could not save the records
    """
    if "file" not in request.files:
        return jsonify({"error": "No file uploaded"}), 400

    email = request.form.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400
    owner_key = normalize_owner_key(email)

    file = request.files["file"]
    content_bytes = file.read()

    try:
        rate = request.form.get("ratePerUnit")
        rate = DEFAULT_RATE if not rate else parse_number("ratePerUnit", rate, positive=False)
        records = parse_csv_string(content_bytes.decode("utf-8-sig"), owner_key, rate)
    except UnicodeDecodeError:
        return jsonify({"error": "File must be UTF-8 text"}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    stored = record_store.insert_many(records)
    if stored < len(records):
        app.logger.error("Stored %d of %d uploaded records for %s", stored, len(records), owner_key)
        return jsonify({"error": "Failed to save usage", "processedCount": stored}), 500

    response = {
        "uploadId": file.filename,
        "processedCount": stored
    }

    if USE_S3 and s3_service:
        s3_key = s3_service.upload_file(content_bytes, file.filename, owner_key)
        if s3_key:
            response["s3Key"] = s3_key

    return jsonify(response), 202


@app.route("/api/uploads", methods=["GET"])
def list_uploads():
    """
    CSV files a user uploaded that were backed up to S3.

    Query Parameters:
        email (required)
    """
    if not USE_S3 or not s3_service:
        return jsonify({"error": "S3 storage not enabled"}), 400

    email = request.args.get("email")
    if not email:
        return jsonify({"error": "Email is required"}), 400

    files = s3_service.list_files(normalize_owner_key(email))
    return jsonify({"files": files, "bucket": s3_service.bucket_name})

# =============================================================================
# API ROUTES - ALERTS AND STATUS
# =============================================================================

@app.route("/api/alerts/subscribe", methods=["POST"])
def subscribe_alerts():
    """
    Subscribe an e-mail address to budget alerts.

    The user will receive a confirmation e-mail from AWS first.

    Request Body (JSON):
        {"email": "asha@example.com"}
    """
    if not USE_SNS or not sns_service:
        return jsonify({"error": "SNS not enabled"}), 400

    fields = text_fields(json_object(), "email")
    if fields is None:
        return jsonify({"error": "email required"}), 400

    email = fields[0]
    subscription_arn = sns_service.subscribe_email(email)

    if subscription_arn:
        return jsonify({
            "message": f"Subscription pending. Check {email} for confirmation link.",
            "subscription_arn": subscription_arn
        })
    return jsonify({"error": "Failed to subscribe"}), 500


@app.route("/api/status", methods=["GET"])
def status():
    """
    Which storage and notification backends are active.
    """
    return jsonify({
        "dynamodb_enabled": USE_DYNAMODB,
        "table_name": dynamodb_service.table_name if dynamodb_service else None,
        "s3_enabled": USE_S3,
        "bucket_name": s3_service.bucket_name if s3_service else None,
        "sns_enabled": USE_SNS,
        "topic_arn": sns_service.topic_arn if sns_service else None,
        "default_rate_per_unit": DEFAULT_RATE
    })

# =============================================================================
# RUN THE SERVER
# =============================================================================

if __name__ == "__main__":
    # debug=True only for local development
    app.run(debug=True)
