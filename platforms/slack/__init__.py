from platforms.slack.slack_oauth_adapter import SLACK_TOKEN_URL, SlackOAuthAdapter

__all__ = ["SLACK_TOKEN_URL", "SlackOAuthAdapter"]
