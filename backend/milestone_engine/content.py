"""Rendering of milestone notification content."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from .domain import MilestoneEvent


@dataclass(frozen=True)
class RenderedNotification:
    subject: str
    body: str


_MOTIVATION_BANDS: tuple[tuple[int, str], ...] = (
    (100, "You've completed your entire learning journey! Time to apply your new skills in the real world."),
    (90, "You're almost at the finish line! Just a few more tasks to complete your learning journey."),
    (75, "You're in the final stretch! Your dedication is paying off. Keep pushing forward!"),
    (50, "You're making excellent progress! You've completed more than half of your learning plan."),
    (25, "Great start! You're building momentum. Consistency is key to success."),
)
_DEFAULT_MOTIVATION = "Every journey begins with a single step. You're on the right track!"


def motivational_message(progress: int) -> str:
    for floor, message in _MOTIVATION_BANDS:
        if progress >= floor:
            return message
    return _DEFAULT_MOTIVATION


def progress_color(progress: int) -> str:
    if progress >= 80:
        return "#28a745"
    if progress >= 50:
        return "#ffc107"
    return "#007bff"


def progress_bar(progress: int) -> str:
    width = min(100, max(0, progress))
    color = progress_color(progress)
    return (
        '<div style="background: #e9ecef; height: 20px; border-radius: 10px; overflow: hidden; position: relative;">'
        f'<div style="background: linear-gradient(90deg, {color}, {color}dd); height: 100%; width: {width}%; border-radius: 10px;"></div>'
        '<div style="position: absolute; top: 50%; left: 50%; transform: translate(-50%, -50%); font-weight: bold; color: #333; font-size: 12px;">'
        f"{progress}%"
        "</div></div>"
    )


def render_subject(event: MilestoneEvent) -> str:
    return f"\U0001F389 {event.name} - {event.progress}% Complete!"


def render_body(event: MilestoneEvent, *, frontend_url: str) -> str:
    base_url = escape(frontend_url.rstrip("/"), quote=True)
    unlock_block = ""
    if event.unlocks_feature:
        unlock_block = (
            '<div style="background: #e8f5e8; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #28a745;">'
            '<h3 style="margin: 0 0 10px 0; color: #2d5a2d;">\U0001F3AF Interview Unlocked!</h3>'
            '<p style="margin: 0; color: #2d5a2d;">'
            f"Congratulations! You've reached {event.threshold_reached}% completion and unlocked the mock interview feature."
            "</p></div>"
        )

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Progress Milestone</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: linear-gradient(135deg, #007bff 0%, #0056b3 100%); color: white; padding: 30px; border-radius: 10px; text-align: center; margin-bottom: 30px;">
    <h1 style="margin: 0; font-size: 28px;">\U0001F389 {escape(event.name)}!</h1>
    <p style="margin: 10px 0 0 0; font-size: 18px; opacity: 0.9;">{escape(event.message)}</p>
  </div>
  <div style="background: #fff; padding: 25px; border-radius: 10px; margin-bottom: 20px;">
    <h2 style="color: #333; margin-top: 0; border-bottom: 2px solid #007bff; padding-bottom: 10px;">\U0001F4CA Your Progress</h2>
    <div style="margin: 20px 0;">
      <div style="display: flex; justify-content: space-between; margin-bottom: 10px;">
        <span style="font-weight: bold;">Learning Progress</span>
        <span style="font-weight: bold; color: #007bff;">{event.progress}%</span>
      </div>
      {progress_bar(event.progress)}
    </div>
    {unlock_block}
    <div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">
      <h3 style="margin: 0 0 10px 0;">\U0001F4A1 Keep Going!</h3>
      <p style="margin: 0; color: #666;">{escape(motivational_message(event.progress))}</p>
    </div>
  </div>
  <div style="text-align: center; padding: 20px; background: #f8f9fa; border-radius: 8px;">
    <p style="margin: 0 0 15px 0; color: #666; font-size: 16px;">Continue your learning journey</p>
    <a href="{base_url}/dashboard" style="background: #007bff; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; display: inline-block; font-weight: bold;">\U0001F680 Continue Learning</a>
  </div>
</body>
</html>
"""


def render_notification(event: MilestoneEvent, *, frontend_url: str) -> RenderedNotification:
    return RenderedNotification(
        subject=render_subject(event),
        body=render_body(event, frontend_url=frontend_url),
    )


__all__ = [
    "RenderedNotification",
    "motivational_message",
    "progress_bar",
    "progress_color",
    "render_body",
    "render_notification",
    "render_subject",
]
