"""Fleet Dispatch: dispatch commit subsystem.

This package is organized by feature modules (dispatch, pay_records, payroll,
commits, ...) with a thin Flask controller layer and service/repository layers.
"""
