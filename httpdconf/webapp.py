"""
httpdconf Web Interface
Flask API for parsing and querying uploaded configuration files.
Run with: python -m httpdconf.webapp
Open: http://localhost:5000
"""

import os
import tempfile
from dataclasses import asdict, fields

from flask import Flask, request, jsonify

from httpdconf.core.exceptions import ConfigFileError
from httpdconf.core.models import ConfigOptions
from httpdconf.core.normalizer import fix_boolean, split_option_pair
from httpdconf.core.parser_engine import ConfigFile

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max upload

BOOLEAN_OPTIONS = ("ignore_case", "fix_booleans", "expand_vars", "raise_error")


@app.route('/api/options', methods=['GET'])
def get_options():
    """Return the parse options and their defaults."""
    defaults = ConfigOptions()
    return jsonify({
        "options": {f.name: getattr(defaults, f.name) for f in fields(ConfigOptions)}
    })


@app.route('/api/parse', methods=['POST'])
def parse():
    """Parse an uploaded config file and return its tree."""
    try:
        config, filename = load_upload()
    except UploadError as e:
        return jsonify({"error": str(e)}), 400
    except ConfigFileError as e:
        return jsonify({"error": str(e)}), 422

    return jsonify({
        "filename": filename,
        "diagnostics": [asdict(d) for d in config.diagnostics],
        "tree": config.context().to_dict(),
    })


@app.route('/api/query', methods=['POST'])
def query():
    """Navigate to a context of an uploaded config file and read a directive."""
    try:
        config, _ = load_upload()
    except UploadError as e:
        return jsonify({"error": str(e)}), 400
    except ConfigFileError as e:
        return jsonify({"error": str(e)}), 422

    handle = config.context()
    for step in request.form.getlist('context'):
        tag, param = split_option_pair(step)
        handle = handle.context(tag, param)
        if handle is None:
            return jsonify({"error": f"No such context: {step}"}), 404

    directive = request.form.get('directive', '')
    return jsonify({
        "directive": directive,
        "values": handle.directive_values(directive),
        "rows": handle.all_rows(directive) if directive else [],
    })


class UploadError(ValueError):
    """Missing or empty upload."""


def load_upload():
    """Save the uploaded file temporarily and parse it with the form's options."""
    if 'config_file' not in request.files:
        raise UploadError("No file uploaded")

    file = request.files['config_file']
    if file.filename == '':
        raise UploadError("No file selected")

    options = {
        name: fix_boolean(request.form.get(name, '0')) == "1"
        for name in BOOLEAN_OPTIONS
    }
    # Uploads only see their own scratch directory; includes cannot leave it
    with tempfile.TemporaryDirectory(prefix='httpdconf-') as upload_dir:
        tmp_path = os.path.join(upload_dir, 'upload.conf')
        with open(tmp_path, 'w', encoding='utf-8') as tmp:
            tmp.write(file.read().decode('utf-8', errors='replace'))

        config = ConfigFile(tmp_path, server_root=upload_dir, allowed_root=upload_dir, **options)
        return config, file.filename


if __name__ == '__main__':
    print("\n" + "=" * 60)
    print("  httpdconf Web Interface")
    print("  Open: http://localhost:5000")
    print("=" * 60 + "\n")
    app.run(debug=True, host='0.0.0.0', port=5000)
