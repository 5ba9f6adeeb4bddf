import time
import json
import os


class SolveTracker:
    """Audit trail of solve requests, optionally persisted as JSON"""

    def __init__(self, log_file=None):
        self.log_file = log_file
        self.logs = self._load_logs()

    def _load_logs(self):
        if self.log_file and os.path.exists(self.log_file):
            with open(self.log_file, "r") as f:
                return json.load(f)
        return {}

    def _save_logs(self):
        if not self.log_file:
            return
        directory = os.path.dirname(self.log_file)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        with open(self.log_file, "w") as f:
            json.dump(self.logs, f, indent=2)

    def log_request_start(self, request_id, operation, share_count, threshold):
        self.logs[request_id] = {
            "operation": operation,
            "start_time": time.time(),
            "status": "initiated",
            "share_count": share_count,
            "threshold": threshold,
            "events": [{"time": time.time(), "event": "request_started"}]
        }
        self._save_logs()

    def log_request_success(self, request_id, authentic_ids, rejected_ids):
        if request_id in self.logs:
            log = self.logs[request_id]
            log["status"] = "success"
            log["end_time"] = time.time()
            log["authentic"] = authentic_ids
            log["rejected"] = rejected_ids
            log["events"].append({
                "time": time.time(),
                "event": "request_success"
            })
            self._save_logs()

    def log_request_failure(self, request_id, error):
        if request_id in self.logs:
            log = self.logs[request_id]
            log["status"] = "failed"
            log["end_time"] = time.time()
            log["events"].append({
                "time": time.time(),
                "event": "request_failed",
                "error": type(error).__name__,
                "message": str(error)
            })
            self._save_logs()

    def get_log(self, request_id):
        return self.logs.get(request_id)
