"""
Cloud Run HTTP Wrapper for the Partner Directory Monitor
Provides an HTTP endpoint that triggers one monitoring run
"""
from flask import Flask, jsonify
import logging
import os
import traceback
from main import run as run_monitor, FATAL_ERRORS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = Flask(__name__)


@app.route('/', methods=['GET', 'POST'])
def trigger_monitor():
    """HTTP endpoint that triggers the monitoring run"""
    logger.info("="*80)
    logger.info("Received HTTP trigger request")
    logger.info("="*80)

    try:
        summary = run_monitor()
        logger.info("Monitoring completed successfully")
        return jsonify({
            'status': 'success',
            'message': 'Partner directory check completed successfully',
            'summary': summary,
        }), 200

    except FATAL_ERRORS as e:
        logger.error(f"Monitoring run failed: {e}")
        return jsonify({
            'status': 'error',
            'error': type(e).__name__,
            'message': str(e),
        }), 500

    except Exception as e:
        logger.error(f"Unexpected error during monitoring: {str(e)}")
        logger.error(traceback.format_exc())
        return jsonify({
            'status': 'error',
            'error': type(e).__name__,
            'message': str(e),
            'traceback': traceback.format_exc()
        }), 500


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({'status': 'healthy'}), 200


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    logger.info(f"Starting server on port {port}")
    app.run(host='0.0.0.0', port=port)
