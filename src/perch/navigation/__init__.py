"""Navigation — guard pipeline and history transports.

One navigation at a time may commit; newer navigations supersede older
ones at their next guard step.
"""
