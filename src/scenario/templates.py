"""SIP message templates for generated SIPp scenarios.

Bracketed tokens such as ``[local_ip]`` or ``[call_id]`` are SIPp keywords,
resolved by SIPp when the scenario runs. They are emitted untouched; only the
caller identity (and the telephone-event payload type) are filled in here.
"""

from __future__ import annotations

from telephony.dtmf import DTMF_PAYLOAD_TYPE, PCMU_PAYLOAD_TYPE, SAMPLE_RATE

INVITE_TEMPLATE = """
INVITE sip:[service]@[remote_ip]:[remote_port] SIP/2.0
Via: SIP/2.0/[transport] [local_ip]:[local_port];branch=[branch]
From: sipp <sip:{from_user}@[local_ip]>;tag=[call_number]
To: <sip:[service]@[remote_ip]:[remote_port]>
Call-ID: [call_id]
CSeq: [cseq] INVITE
Contact: sip:{from_user}@[local_ip]:[local_port]
Max-Forwards: 100
Content-Type: application/sdp
Content-Length: [len]

v=0
o=user1 53655765 2353687637 IN IP[local_ip_type] [local_ip]
s=-
c=IN IP[media_ip_type] [media_ip]
t=0 0
m=audio [media_port] RTP/AVP {pcmu_pt}
a=rtpmap:{pcmu_pt} PCMU/{rate}
a=rtpmap:{dtmf_pt} telephone-event/{rate}
a=fmtp:{dtmf_pt} 0-15
"""

ACK_TEMPLATE = """
ACK [next_url] SIP/2.0
Via: SIP/2.0/[transport] [local_ip]:[local_port];branch=[branch]
From: <sip:{from_user}@[local_ip]>;tag=[call_number]
[last_To:]
[routes]
Call-ID: [call_id]
CSeq: [cseq] ACK
Contact: sip:{from_user}@[local_ip]:[local_port]
Max-Forwards: 100
Content-Length: 0
"""

BYE_TEMPLATE = """
BYE sip:[service]@[remote_ip]:[remote_port] SIP/2.0
[last_Via:]
[last_From:]
[last_To:]
[last_Call-ID]
CSeq: [cseq] BYE
Contact: <sip:[local_ip]:[local_port];transport=[transport]>
Max-Forwards: 100
Content-Length: 0
"""

OK_TO_BYE_TEMPLATE = """
SIP/2.0 200 OK
[last_Via:]
[last_From:]
[last_To:]
[routes]
[last_Call-ID:]
[last_CSeq:]
Contact: <sip:[local_ip]:[local_port];transport=[transport]>
Max-Forwards: 100
Content-Length: 0
"""


def invite_message(from_user: str) -> str:
    # TODO: take the telephone-event payload type from the encoder's MediaProfile
    # once the SDP offer is built per scenario instead of from a fixed template.
    return INVITE_TEMPLATE.format(
        from_user=from_user,
        pcmu_pt=PCMU_PAYLOAD_TYPE,
        dtmf_pt=DTMF_PAYLOAD_TYPE,
        rate=SAMPLE_RATE,
    )


def ack_message(from_user: str) -> str:
    return ACK_TEMPLATE.format(from_user=from_user)


def bye_message() -> str:
    return BYE_TEMPLATE


def ok_to_bye_message() -> str:
    return OK_TO_BYE_TEMPLATE
