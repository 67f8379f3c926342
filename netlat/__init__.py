##############################################################################
#                                                                            #
#  Objective:                                                                #
#    Raw TCP/UDP round-trip latency measurement without application-layer    #
#    framing (NICs, VPNs, proxies).                                          #
#                                                                            #
#  Features supported:                                                       #
#    - TCP and UDP echo servers                                              #
#    - TCP and UDP forwarders (one fixed remote peer)                        #
#    - TCP and UDP latency clients (random payload, byte-exact check)        #
#    - TCP duplex tester (separate send and receive legs)                    #
#    - IPv4 and IPv6                                                         #
#    - Basic Min, Max, Avg, Jitter summary (jitter according to RFC1889)     #
#                                                                            #
#  Modes of operation:                                                       #
#    - Server                                                                #
#        echo every read/datagram back to its sender                         #
#    - Forwarder                                                             #
#        relay local peers to one remote peer, local -> remote only          #
#    - Client                                                                #
#        send N payloads and time each full reply                            #
#    - Tester                                                                #
#        send on one connection, receive on another (forwarder under test)   #
#                                                                            #
#  Limitations:                                                              #
#    No timeouts: a hung peer blocks its handler or client forever.          #
#    The TCP forwarder fans all local connections into one upstream and      #
#    never reads replies, so only one local session should be active.        #
#                                                                            #
##############################################################################

__version__ = "0.1.0"
