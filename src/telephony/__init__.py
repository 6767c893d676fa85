"""Media encoding for generated scenarios.

G.711 mu-law audio, RTP/RFC 4733 packetization and the libpcap container that
SIPp replays with ``play_pcap_audio``.
"""
