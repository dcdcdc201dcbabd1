import json
import os
import urllib.error
import urllib.request
from typing import Mapping, Optional

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


def format_github_ci_info(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    repository = env.get("GITHUB_REPOSITORY")
    run_id = env.get("GITHUB_RUN_ID")
    if not repository or not run_id:
        return None
    run_url = "https://github.com/%s/actions/runs/%s" % (repository, run_id)
    return "[Message Source](%s)" % run_url


def sanitize_slack_message(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class SlackNotifier:
    def __init__(self, token: str, channel: str) -> None:
        self.token = token
        self.channel = channel

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.channel)

    def build_payload(self, text: str) -> dict:
        ci_info = format_github_ci_info()
        if ci_info:
            text = "%s\n\n%s" % (text, ci_info)
        return {
            "channel": self.channel,
            "text": sanitize_slack_message(text),
            "unfurl_links": False,
        }

    def send(self, text: str) -> bool:
        if not self.enabled:
            return False

        payload = self.build_payload(text)
        print(">>> Posting message to Slack -> %s" % payload["text"], flush=True)
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            SLACK_POST_MESSAGE_URL,
            data=data,
            method="POST",
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": "Bearer %s" % self.token,
            },
        )
        try:
            with urllib.request.urlopen(request, timeout=10) as response:
                body = response.read().decode("utf-8", errors="replace")
            parsed = json.loads(body)
        except (urllib.error.URLError, urllib.error.HTTPError, ValueError) as exc:
            print("[WARN] Slack delivery failed: %s" % exc, flush=True)
            return False
        if not parsed.get("ok"):
            print("[WARN] Slack rejected message: %s" % parsed.get("error"), flush=True)
            return False
        return True
