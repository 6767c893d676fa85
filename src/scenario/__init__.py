"""Scenario compiler for SIPp call-flow tests.

A :class:`scenario.builder.Scenario` accumulates call-flow steps and a parallel
media timeline, then compiles both into a SIPp XML script and a pcap capture.
"""
