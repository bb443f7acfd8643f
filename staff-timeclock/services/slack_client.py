import logging
import sys

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """コンソール出力による運用通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[タイムクロック通知] {message}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[タイムクロック要確認] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる運用通知。書き込みが途中で失敗した時の手動照合依頼に使う"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            from slack_sdk import WebClient
            self._client = WebClient(token=token)

    def send(self, message: str) -> bool:
        """メッセージ送信（クライアント未設定時はコンソールへ）"""
        if self._client is None:
            return self._fallback.send(message)

        try:
            self._client.chat_postMessage(channel=self._channel, text=message)
            return True
        except Exception as e:
            # 通知の失敗で元の処理を止めない
            logger.warning("Slack notification failed: %s", e)
            return False

    def send_error(self, error: str) -> bool:
        message = f"⚠️ Timeclock sheet needs manual reconciliation: {error}"
        return self.send(message)


def create_notifier(config: dict, token: str = ""):
    """設定に基づいて通知先を選ぶ"""
    slack_config = config["slack"]
    if slack_config["enabled"] and token:
        return SlackNotifier(token=token, channel=slack_config.get("notify_channel", ""))
    return ConsoleNotifier()
