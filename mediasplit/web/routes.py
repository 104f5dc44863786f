"""Web UI routes for MediaSplit."""

import json
import logging
import queue
import shutil
import threading
import uuid
import zipfile
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    render_template,
    request,
    send_file,
)

from mediasplit import ffutil
from mediasplit.analyzers.boundaries import estimate_part_bytes, plan
from mediasplit.engine import Orchestrator, State
from mediasplit.errors import EngineLoadError, UnsupportedFormatError, user_message
from mediasplit.manifest import SplitManifest, encoding_from_dict, split_spec_from_dict

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__, template_folder="templates", static_folder="static")

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}
_jobs_lock = threading.Lock()


def _get_job(job_id: str) -> dict | None:
    return _jobs.get(job_id)


def _media_dict(job: dict) -> dict:
    media = job["media"]
    return {
        "filename": media.name,
        "size_bytes": media.size_bytes,
        "duration": media.duration,
        "mime_type": media.mime_type,
    }


@bp.route("/")
def index():
    return render_template("index.html")


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    filename = Path(f.filename).name
    ext = Path(filename).suffix or ".mp4"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)

    try:
        media = ffutil.probe_media(input_path, name=filename)
        if media.duration <= 0:
            raise UnsupportedFormatError(f"Could not determine the duration of {filename}")
    except UnsupportedFormatError as e:
        shutil.rmtree(job_dir, ignore_errors=True)
        return jsonify({"error": user_message(e)}), 415
    except EngineLoadError as e:
        shutil.rmtree(job_dir, ignore_errors=True)
        return jsonify({"error": user_message(e)}), 503

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": filename,
        "media": media,
        "status": "uploaded",
        "orchestrator": Orchestrator(engine=current_app.config.get("MEDIA_ENGINE")),
    }
    logger.info("Uploaded %s as job %s (%.3fs)", filename, job_id, media.duration)

    return jsonify({"job_id": job_id, **_media_dict(_jobs[job_id])})


@bp.route("/api/jobs/<job_id>/preview", methods=["POST"])
def preview(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    config = request.get_json(silent=True) or {}
    media = job["media"]
    try:
        spec = split_spec_from_dict(config.get("split", {}))
        windows = plan(
            media.duration,
            media.size_bytes,
            spec,
            overlap_ratio=float(config.get("overlap_ratio", 0.0)),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "parts": len(windows),
        "windows": [
            {
                "index": w.index,
                "start": w.start,
                "duration": w.duration,
                "end": w.end,
                "estimated_bytes": estimate_part_bytes(w, media.duration, media.size_bytes),
            }
            for w in windows
        ],
    })


@bp.route("/api/jobs/<job_id>/split", methods=["POST"])
def start_split(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    config = request.get_json(silent=True) or {}
    try:
        spec = split_spec_from_dict(config.get("split", {}))
        encoding = encoding_from_dict(config.get("encoding"))
        overlap_ratio = float(config.get("overlap_ratio", 0.0))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    with _jobs_lock:
        if job["status"] not in ("uploaded", "done", "error"):
            return jsonify({"error": f"Job is already {job['status']}"}), 409
        if ffutil.engine_busy() or any(j["status"] == "processing" for j in _jobs.values()):
            return jsonify({"error": "Another split is in progress"}), 409
        job["status"] = "processing"

    orchestrator: Orchestrator = job["orchestrator"]
    orchestrator.reset()
    stale = job.pop("archive", None)
    if stale is not None:
        stale.unlink(missing_ok=True)

    manifest = SplitManifest(
        input=job["input_path"],
        output_dir=job["dir"] / "parts",
        split=spec,
        encoding=encoding,
        overlap_ratio=overlap_ratio,
        source_name=job["filename"],
    )

    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["error"] = None
    job["result"] = None

    def on_progress(stage: str, percent: int):
        progress_queue.put({"stage": stage, "progress": percent})

    def on_state(state: State, index: int | None):
        job["state"] = state.value
        job["part"] = index

    orchestrator.on_progress = on_progress
    orchestrator.on_state = on_state

    def run():
        try:
            result = orchestrator.run(manifest)
            for artifact in result.artifacts:
                artifact.download_url = f"/api/jobs/{job_id}/artifacts/{artifact.index}"
            job["result"] = {
                "filename": result.source.name,
                "duration": result.source.duration,
                "total_bytes": result.total_bytes,
                "artifacts": [a.to_dict() for a in result.artifacts],
            }
            job["status"] = "done"
        except Exception as e:
            job["status"] = "error"
            job["error"] = user_message(e)
        finally:
            progress_queue.put(None)  # sentinel

    thread = threading.Thread(target=run, daemon=True)
    job["thread"] = thread
    thread.start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    q = job.get("progress_queue")
    if q is None:
        return jsonify({"error": "No split in progress"}), 409

    def generate():
        while True:
            # Another stream may have taken the sentinel; poll so this one still ends
            try:
                msg = q.get(timeout=1)
            except queue.Empty:
                if job["status"] == "processing":
                    continue
                msg = None
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 100,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    resp = {
        "status": job["status"],
        "state": job["orchestrator"].state.value,
        **_media_dict(job),
    }
    if job["status"] == "processing":
        resp["part"] = job.get("part")
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)


def _artifacts(job: dict):
    result = job["orchestrator"].result
    return result.artifacts if result is not None else []


@bp.route("/api/jobs/<job_id>/artifacts/<int:index>")
def download_artifact(job_id: str, index: int):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    artifacts = _artifacts(job)
    if not 0 <= index < len(artifacts):
        return jsonify({"error": "Part not found"}), 404

    artifact = artifacts[index]
    return send_file(
        artifact.path,
        mimetype=job["media"].mime_type,
        as_attachment=True,
        download_name=artifact.name,
    )


@bp.route("/api/jobs/<job_id>/archive")
def download_archive(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    archive = job.get("archive")
    if archive is None:
        archive = job["dir"] / f"{job['media'].base_name}_parts.zip"
        # Media is already compressed; store entries as-is
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_STORED) as zf:
            for artifact in _artifacts(job):
                zf.write(artifact.path, arcname=artifact.name)
        job["archive"] = archive

    return send_file(archive, mimetype="application/zip", as_attachment=True, download_name=archive.name)


@bp.route("/api/jobs/<job_id>/reset", methods=["POST"])
def reset_job(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] == "processing":
        return jsonify({"error": "Job is processing"}), 409

    job["orchestrator"].reset()
    archive = job.pop("archive", None)
    if archive is not None:
        archive.unlink(missing_ok=True)
    job["status"] = "uploaded"
    job["result"] = None
    job["error"] = None
    job.pop("progress_queue", None)
    return jsonify({"status": "uploaded"})


@bp.route("/api/jobs/<job_id>", methods=["DELETE"])
def delete_job(job_id: str):
    """Drop a job and everything it wrote under the work directory."""
    with _jobs_lock:
        job = _get_job(job_id)
        if job is None:
            return jsonify({"error": "Job not found"}), 404
        if job["status"] == "processing":
            return jsonify({"error": "Job is processing"}), 409
        _jobs.pop(job_id)

    job["orchestrator"].reset()
    shutil.rmtree(job["dir"], ignore_errors=True)
    logger.info("Deleted job %s", job_id)
    return jsonify({"status": "deleted"})
