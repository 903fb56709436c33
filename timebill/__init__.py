"""TimeBill - billable time tracking engine"""
