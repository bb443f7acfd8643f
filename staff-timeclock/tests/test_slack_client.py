from unittest.mock import MagicMock, patch

from services.slack_client import ConsoleNotifier, SlackNotifier, create_notifier


def test_console_notifier_send():
    """ConsoleNotifierがメッセージを出力すること"""
    notifier = ConsoleNotifier()
    with patch("builtins.print") as mock_print:
        result = notifier.send("テストメッセージ")
    assert result is True
    mock_print.assert_called_once()


def test_console_notifier_send_error():
    """ConsoleNotifierがエラーメッセージを出力すること"""
    notifier = ConsoleNotifier()
    with patch("builtins.print") as mock_print:
        result = notifier.send_error("clock-out for Lisa failed")
    assert result is True
    assert "clock-out for Lisa failed" in mock_print.call_args.args[0]


def test_slack_notifier_send_success():
    """SlackNotifierがメッセージ送信に成功すること"""
    mock_client = MagicMock()
    mock_client.chat_postMessage.return_value = {"ok": True}

    notifier = SlackNotifier(token="xoxb-test", channel="C12345")
    notifier._client = mock_client

    result = notifier.send("テスト通知")
    assert result is True
    mock_client.chat_postMessage.assert_called_once_with(
        channel="C12345", text="テスト通知"
    )


def test_slack_notifier_send_error_prefix():
    mock_client = MagicMock()
    notifier = SlackNotifier(token="xoxb-test", channel="C12345")
    notifier._client = mock_client

    notifier.send_error("clock-in for Lisa: step 'append Dashboard row' failed")

    text = mock_client.chat_postMessage.call_args.kwargs["text"]
    assert text.startswith("⚠️ Timeclock sheet needs manual reconciliation")
    assert "append Dashboard row" in text


def test_slack_notifier_send_failure():
    """Slack API失敗時にFalseを返すこと"""
    mock_client = MagicMock()
    mock_client.chat_postMessage.side_effect = Exception("API Error")

    notifier = SlackNotifier(token="xoxb-test", channel="C12345")
    notifier._client = mock_client

    result = notifier.send("テスト通知")
    assert result is False


def test_slack_notifier_fallback():
    """トークン未設定時はコンソールにフォールバックすること"""
    notifier = SlackNotifier(token="", channel="")
    with patch("builtins.print") as mock_print:
        result = notifier.send("フォールバックテスト")
    assert result is True
    mock_print.assert_called_once()


def test_create_notifier():
    config = {"slack": {"enabled": True, "notify_channel": "C12345"}}
    assert isinstance(create_notifier(config, token=""), ConsoleNotifier)
    assert isinstance(create_notifier(config, token="xoxb-test"), SlackNotifier)

    disabled = {"slack": {"enabled": False, "notify_channel": "C12345"}}
    assert isinstance(create_notifier(disabled, token="xoxb-test"), ConsoleNotifier)
