from civic_reports.realtime import ChangeChannel

channel = ChangeChannel()
