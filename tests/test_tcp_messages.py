from minnow.tcp_messages import (
    TCPMessage,
    TCPReceiverMessage,
    TCPSenderMessage,
    UserDatagramInfo,
)


def test_sequence_length_counts_flags_and_payload():
    assert TCPSenderMessage(syn=True, payload=b"abc", fin=True).sequence_length() == 5
    assert TCPSenderMessage(payload=b"abc").sequence_length() == 3
    assert TCPSenderMessage(syn=True).sequence_length() == 1


def test_empty_sender_message_occupies_nothing():
    assert TCPSenderMessage().sequence_length() == 0
    assert TCPSenderMessage(rst=True).sequence_length() == 0


def test_receiver_message_defaults():
    message = TCPReceiverMessage()
    assert message.ackno is None
    assert message.window_size == 0
    assert message.rst is False


def test_udinfo_defaults():
    assert UserDatagramInfo() == UserDatagramInfo(src_port=0, dst_port=0, cksum=0)


def test_messages_do_not_share_parts():
    first = TCPMessage()
    second = TCPMessage()
    first.sender.payload = b"data"
    first.receiver.ackno = 7
    assert second.sender.payload == b""
    assert second.receiver.ackno is None


def test_message_equality():
    first = TCPMessage(TCPSenderMessage(seqno=3, syn=True), TCPReceiverMessage(ackno=4))
    second = TCPMessage(TCPSenderMessage(seqno=3, syn=True), TCPReceiverMessage(ackno=4))
    assert first == second
    second.sender.fin = True
    assert not first == second