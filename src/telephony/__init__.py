"""Call-control document rendering.

The routing core only produces semantic instructions; this package turns
them into TwiML for Twilio Programmable Voice.
"""
