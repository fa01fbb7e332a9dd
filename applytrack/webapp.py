"""
ApplyTrack Web API
A Flask JSON interface for spreadsheet imports, interviews and resume scoring.
"""

from flask import Flask, jsonify, request
from rich.console import Console

from .exceptions import (
    ConfigurationError,
    EmptySheetError,
    MissingColumnsError,
    SheetImportError,
)
from .importer import get_importer
from .resumes import get_resume_enhancer
from .scoring import get_relevance_score

console = Console()

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024  # 16MB max request size

# Failures caused by the request or the sheet contents rather than the server
CLIENT_ERRORS = (ConfigurationError, EmptySheetError, MissingColumnsError)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ConfigurationError("request body")
    return data


def _import_error_response(error: Exception):
    if isinstance(error, CLIENT_ERRORS):
        return jsonify({'error': str(error)}), 400

    console.print(f"[red]Error in import-sheets: {error}[/red]")
    return jsonify({
        'error': f"Failed to import from Google Sheets: {error}",
        'details': repr(error)
    }), 500


@app.route('/api/status')
def get_status():
    """Get interview counts"""
    from .db import get_db

    with get_db() as db:
        return jsonify({
            'success': True,
            'interviews': db.get_interview_count(),
            'byStatus': db.get_status_counts()
        })


@app.route('/api/interviews')
def list_interviews():
    """List stored interviews, optionally for one user"""
    from .db import get_db

    user_id = request.args.get('userId')
    status = request.args.get('status')
    with get_db() as db:
        return jsonify({'success': True, 'interviews': db.get_interviews(user_id=user_id, status=status)})


# JSON field -> interviews column
INTERVIEW_FIELDS = {
    'company': 'company',
    'role': 'role',
    'dateApplied': 'date_applied',
    'status': 'status',
    'notes': 'notes',
    'nextInterviewDate': 'next_interview_date',
    'location': 'location',
    'salary': 'salary',
    'platform': 'platform',
    'source': 'source',
}


def _interview_updates(data: dict) -> dict:
    unknown = set(data) - set(INTERVIEW_FIELDS) - {'userId'}
    if unknown:
        raise ValueError(f"Unknown interview fields: {', '.join(sorted(unknown))}")
    return {column: data[name] for name, column in INTERVIEW_FIELDS.items() if name in data}


@app.route('/api/interviews', methods=['POST'])
def create_interview():
    """Add an interview entered by hand"""
    from .db import get_db

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    if not data.get('userId'):
        return jsonify({'error': 'Missing required parameter: userId'}), 400

    try:
        fields = _interview_updates(data)
        company = fields.pop('company', '')
        with get_db() as db:
            interview_id = db.add_interview(data['userId'], company, **fields)
            interview = db.get_interview(interview_id)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({'success': True, 'interview': interview}), 201


@app.route('/api/interviews/<int:interview_id>')
def get_interview(interview_id):
    """Get one interview"""
    from .db import get_db

    with get_db() as db:
        interview = db.get_interview(interview_id)
    if not interview:
        return jsonify({'error': f'Interview {interview_id} not found'}), 404
    return jsonify({'success': True, 'interview': interview})


@app.route('/api/interviews/<int:interview_id>', methods=['PATCH'])
def update_interview(interview_id):
    """Change some fields of an interview"""
    from .db import get_db

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    try:
        updates = _interview_updates(data)
        if 'userId' in data:
            raise ValueError("userId cannot be changed")
        with get_db() as db:
            updated = db.update_interview(interview_id, **updates)
            interview = db.get_interview(interview_id)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    if not updated:
        return jsonify({'error': f'Interview {interview_id} not found'}), 404
    return jsonify({'success': True, 'interview': interview})


@app.route('/api/interviews/<int:interview_id>', methods=['DELETE'])
def delete_interview(interview_id):
    """Delete an interview"""
    from .db import get_db

    with get_db() as db:
        deleted = db.delete_interview(interview_id)
    if not deleted:
        return jsonify({'error': f'Interview {interview_id} not found'}), 404
    return jsonify({'success': True})


@app.route('/api/import-sheets', methods=['POST'])
def import_sheets():
    """Import interviews from a Google Sheet"""
    try:
        data = _json_body()
        console.print(
            f"Request params: spreadsheetId={data.get('spreadsheetId')}, "
            f"sheetName={data.get('sheetName') or 'default'}, userId={data.get('userId')}"
        )

        importer = get_importer()
        try:
            summary = importer.run_import(
                spreadsheet_id=data.get('spreadsheetId'),
                sheet_name=data.get('sheetName') or None,
                access_token=data.get('accessToken'),
                user_id=data.get('userId'),
            )
        finally:
            importer.db.close()
    except SheetImportError as e:
        return _import_error_response(e)

    result = summary.to_dict()
    preview_data = result.pop('previewData')
    return jsonify({'success': True, 'summary': result, 'previewData': preview_data})


@app.route('/api/preview-sheet', methods=['POST'])
def preview_sheet():
    """Show how a Google Sheet would be imported, without storing anything"""
    try:
        data = _json_body()
        importer = get_importer()
        try:
            preview = importer.preview(
                spreadsheet_id=data.get('spreadsheetId'),
                sheet_name=data.get('sheetName') or None,
                access_token=data.get('accessToken'),
                user_id=data.get('userId') or "",
            )
        finally:
            importer.db.close()
    except SheetImportError as e:
        return _import_error_response(e)

    return jsonify({'success': True, **preview.to_dict()})


@app.route('/api/relevance-score', methods=['POST'])
def relevance_score():
    """Score a resume against a job description"""
    data = request.get_json(silent=True) or {}
    score = get_relevance_score(data.get('resumeText') or "", data.get('jobDescription') or "")
    return jsonify({'score': score})


@app.route('/api/enhance-resume', methods=['POST'])
def enhance_resume():
    """Rewrite a resume with the configured Ollama model"""
    data = request.get_json(silent=True) or {}

    # Errors come back with status 200 and are handled client-side
    try:
        enhanced = get_resume_enhancer().enhance(data.get('resumeText') or "")
    except (ValueError, RuntimeError) as e:
        console.print(f"[red]Error in enhance-resume: {e}[/red]")
        return jsonify({'error': str(e) or 'An unknown error occurred'})

    return jsonify({'enhancedResume': enhanced})


def run(host: str = None, port: int = None, debug: bool = False):
    """Start the development server using configured host and port."""
    from .config import get_config_manager

    config = get_config_manager()
    app.run(
        host=host or config.get('webapp', 'host'),
        port=port or config.get('webapp', 'port'),
        debug=debug
    )
