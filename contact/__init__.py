"""
Contact App

Handles contact form submissions from the public website:
- Honeypot, IP block and rate limit gates
- Cloudflare Turnstile verification
- Spam heuristics on name, organization and message
- Notification email to the site owner over SMTP
"""
