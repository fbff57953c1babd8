"""
roomhub
~~~~~~~

实时聊天房间服务 —— 房间创建/加入、消息扇出、房主踢人与封禁。
"""
__version__ = "0.1.0"
