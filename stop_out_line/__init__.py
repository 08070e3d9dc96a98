"""Stop-Out Line - Broker Stop-Out Level on the Chart

Computes the price at which the broker would force-liquidate the net position
on the chart's instrument and keeps a horizontal line and label at that level.
Press Shift+S to hide or show the line.
"""

__version__ = "1.0.0"
