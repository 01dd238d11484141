import json
import logging
import sys

import cv2
import numpy as np
from flask import Flask, Response, request, jsonify

from constants import PORT, HOST, LOG_LEVEL, MEGABYTE, MAX_UPLOAD_MB
from capture import CaptureEngine, EnhancementOptions, PixelFormat


logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


app = Flask(__name__)


# Enable CORS for all routes
from flask_cors import CORS
CORS(app)

app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_MB * MEGABYTE
app.config['MAX_FORM_MEMORY_SIZE'] = MAX_UPLOAD_MB * MEGABYTE


# One engine per process: a single capture session, one frame in flight.
engine = CaptureEngine()


class BadRequest(Exception):
    pass


@app.errorhandler(BadRequest)
def handle_bad_request(e):
    return jsonify(message=str(e)), 400


def read_frame():
    """
    Frame from the request: an uploaded image file ('file'), or raw pixels
    in the body with width/height/format query args.

    Returns:
        (data, width, height, pixel_format)
    """
    file = request.files.get('file')
    if file is not None:
        image = cv2.imdecode(np.frombuffer(file.read(), np.uint8), cv2.IMREAD_COLOR)
        if image is None:
            raise BadRequest("Failed to decode image")
        height, width = image.shape[:2]
        return image, width, height, PixelFormat.BGR

    data = request.get_data()
    if not data:
        raise BadRequest("No image provided")

    width = request.args.get('width', type=int)
    height = request.args.get('height', type=int)
    if not width or not height:
        raise BadRequest("Raw frames need width and height")

    pixel_format = request.args.get('format', default=int(PixelFormat.BGRA), type=int)
    return data, width, height, pixel_format


def float_list(name: str, count: int):
    raw = request.values.get(name)
    if raw is None:
        return None
    try:
        values = json.loads(raw) if raw.strip().startswith('[') else raw.split(',')
        values = [float(v) for v in values]
    except (TypeError, ValueError):
        raise BadRequest(f"'{name}' must be a list of numbers")
    if len(values) != count:
        raise BadRequest(f"'{name}' must have {count} values")
    return values


def read_options():
    try:
        return EnhancementOptions.from_dict(request.values)
    except (KeyError, ValueError) as e:
        raise BadRequest(f"Invalid enhancement options: {e}")


def image_response(result):
    with result:
        if not result.success:
            return jsonify(message=result.error_message), 400

        ok, encoded = cv2.imencode('.png', result.image)
        if not ok:
            return jsonify(message="Failed to encode image"), 500

        response = Response(encoded.tobytes(), mimetype='image/png')
        response.headers['X-Image-Width'] = str(result.width)
        response.headers['X-Image-Height'] = str(result.height)
        response.headers['X-Image-Channels'] = str(result.channels)
        return response


@app.route('/is-available', methods=['GET'])
def is_available():
    return jsonify(isAvailable=True), 200


@app.route('/analyze', methods=['POST'])
def analyze():
    data, width, height, pixel_format = read_frame()

    rotation = request.args.get('rotation', default=0, type=int)
    crop = float_list('crop', 4)

    result = engine.analyze_frame(data, width, height, pixel_format, rotation, crop)
    return jsonify(result.to_dict()), 200


@app.route('/enhance', methods=['POST'])
def enhance():
    data, width, height, pixel_format = read_frame()

    corners = float_list('corners', 8)
    if corners is None:
        raise BadRequest("Corners not provided")

    options = read_options()
    result = engine.enhance_image(data, width, height, pixel_format, corners, options)
    return image_response(result)


@app.route('/enhance-guide-frame', methods=['POST'])
def enhance_guide_frame():
    data, width, height, pixel_format = read_frame()

    guide = float_list('guide', 4)
    if guide is None:
        raise BadRequest("Guide frame not provided")

    rotation = request.args.get('rotation', default=0, type=int)
    options = read_options()
    result = engine.enhance_image_with_guide_frame(data, width, height, pixel_format, guide, options, rotation)
    return image_response(result)


@app.route('/last-analysis', methods=['GET'])
def last_analysis():
    return jsonify(engine.get_last_analysis().to_dict()), 200


@app.route('/reset', methods=['POST'])
def reset():
    engine.reset()
    logger.info("Capture session reset")
    return jsonify(reset=True), 200


if __name__ == '__main__':
    app.run(debug=True, port=PORT, host=HOST)
