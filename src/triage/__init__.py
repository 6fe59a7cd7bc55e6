"""GitHub triage bot.

This package receives GitHub webhook deliveries and keeps a "Needs Triage"
milestone on every open issue and pull request until a human assigns a
different one:
- Webhook classification into typed events
- Event routing and response mapping
- Milestone get-or-create resolution
- Optional acknowledgement comments
"""
