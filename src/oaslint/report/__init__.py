"""Report exporters consuming a run's findings."""

from oaslint.report.robot import build_robot_xml

__all__ = ["build_robot_xml"]
