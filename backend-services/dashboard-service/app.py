# backend-services/dashboard-service/app.py
# responsible for handling API routing and HTTP request/response logic
import os
import time
import logging
from logging.handlers import RotatingFileHandler
from functools import partial

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from shared.contracts import ApiError
from dashboard_config import ConfigError, load_config
from helper_functions import TickerContextFilter, dump_contract, normalize_ticker
import provider_client
from price_aggregator import aggregate_prices, build_price_response
from transcript_fetcher import fetch_transcript

app = Flask(__name__)
PORT = int(os.getenv("PORT", 3007))

# Industry groups are keyed by configuration order; keep it on the wire.
app.json.sort_keys = False

# The static frontend may be served from anywhere, so every origin is allowed.
CORS(
    app,
    resources={r"/api/*": {"origins": "*"}},
    methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
    send_wildcard=True,
)

CONFIG_ERROR_MESSAGE = "API authentication is not properly configured"


@app.after_request
def add_cors_method_headers(response):
    """flask-cors only sends these on preflights; the frontend expects them on every API response."""
    if request.path.startswith('/api/'):
        response.headers['Access-Control-Allow-Methods'] = 'GET, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


# --- Structured Logging Setup ---
def setup_logging(app):
    """Configures console and rotating-file logging for the app and its modules."""
    log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    ticker_filter = TickerContextFilter()
    log_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(ticker)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = []

    console_handler = logging.StreamHandler()
    handlers.append(console_handler)

    # An empty LOG_DIR disables file logging (e.g. read-only serverless filesystems).
    log_directory = os.environ.get("LOG_DIR", "/app/logs")
    if log_directory:
        os.makedirs(log_directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_directory, "dashboard_service.log"),
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=5
        )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(log_level)
        handler.addFilter(ticker_filter)
        handler.setFormatter(log_formatter)

    loggers_to_configure = [
        app.logger,
        logging.getLogger('dashboard_config'),
        logging.getLogger('provider_client'),
        logging.getLogger('price_aggregator'),
        logging.getLogger('transcript_fetcher'),
    ]
    for logger in loggers_to_configure:
        # Clear any existing handlers to prevent duplicate log entries
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        logger.setLevel(log_level)
        logger.propagate = False

setup_logging(app)
# --- End of Logging Setup ---


def _error(status: int, error: str, message: str, **extra):
    body = ApiError(error=error, message=message, **extra)
    return jsonify(dump_contract(body)), status


def _load_config_or_error():
    """Returns (config, None) or (None, error response). No outbound call is made on error."""
    try:
        config = load_config()
    except ConfigError as e:
        app.logger.error(f"Service configuration is invalid: {e}")
        return None, _error(500, 'Configuration error', 'Service configuration is invalid')
    if not config.has_credentials:
        app.logger.error("API_KEY environment variable is not configured")
        return None, _error(500, 'Configuration error', CONFIG_ERROR_MESSAGE)
    return config, None


@app.errorhandler(405)
def method_not_allowed(e):
    return _error(405, 'Method not allowed', 'This endpoint only accepts GET requests')


@app.errorhandler(404)
def route_not_found(e):
    return _error(404, 'Not found', f"No endpoint at {request.path}")


@app.route('/api/stocks', methods=['GET'])
def stock_prices():
    """Fetches prices for every tracked company and returns them, grouped by industry when configured."""
    start_time = time.time()
    config, error_response = _load_config_or_error()
    if error_response:
        return error_response

    try:
        fetch_price = partial(provider_client.fetch_stock_price, config=config)
        aggregate = aggregate_prices(config.universe, fetch_price, max_workers=config.max_workers)
        body, status = build_price_response(aggregate)
        app.logger.info(
            f"Stock prices served in {time.time() - start_time:.2f}s: "
            f"{aggregate.total_successful}/{aggregate.total_companies} succeeded."
        )
        return jsonify(dump_contract(body)), status
    except ValidationError as e:
        app.logger.critical(f"Output contract violation for stock prices: {e}")
        return _error(500, 'Internal server error', 'An internal error occurred while generating the stock price response.')
    except Exception as e:
        app.logger.error(f"Unexpected error in stock handler: {e}", exc_info=True)
        return _error(
            500, 'Internal server error',
            'An unexpected error occurred while fetching stock data',
            details=str(e),
        )


def _parse_int_arg(name: str, low: int, high: int):
    """Returns (value, error message). Absent arguments yield (None, None)."""
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None, None
    try:
        value = int(raw)
    except ValueError:
        return None, f"'{name}' must be an integer"
    if not low <= value <= high:
        return None, f"'{name}' must be between {low} and {high}"
    return value, None


@app.route('/api/earnings', methods=['GET'])
def earnings_transcript():
    """Relays the earnings call transcript for ?ticker=SYMBOL."""
    raw_ticker = request.args.get('ticker', '')
    if not raw_ticker.strip():
        return _error(400, 'Bad request', 'Ticker parameter is required. Usage: /api/earnings?ticker=MSFT')

    ticker = normalize_ticker(raw_ticker)
    if ticker is None:
        return _error(400, 'Bad request', 'Invalid ticker format. Use letters, digits, dots or hyphens (max 10).')

    year, year_error = _parse_int_arg('year', 1990, 2100)
    quarter, quarter_error = _parse_int_arg('quarter', 1, 4)
    if year_error or quarter_error:
        return _error(400, 'Bad request', year_error or quarter_error, ticker=ticker)

    config, error_response = _load_config_or_error()
    if error_response:
        return error_response

    try:
        fetch = partial(provider_client.fetch_earnings_transcript, config=config)
        body, status = fetch_transcript(ticker, fetch, year=year, quarter=quarter)
        return jsonify(dump_contract(body)), status
    except Exception as e:
        app.logger.error(f"Error in earnings handler: {e}", exc_info=True)
        return _error(
            500, 'Internal server error',
            'An unexpected error occurred while fetching earnings transcript',
            details=str(e),
            ticker=ticker,
        )


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({'status': 'healthy'}), 200


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=PORT)
